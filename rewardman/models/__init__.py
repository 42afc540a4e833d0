"""Rewardman models."""

from rewardman.models.customer import Customer, CustomerRole
from rewardman.models.purchase import Purchase
from rewardman.models.coupon import Coupon
from rewardman.models.sequence import IdentifierSequence, SequenceNamespace

__all__ = [
    "Customer",
    "CustomerRole",
    "Purchase",
    "Coupon",
    # Identifier allocation
    "IdentifierSequence",
    "SequenceNamespace",
]
