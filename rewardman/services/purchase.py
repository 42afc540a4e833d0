"""Purchase service - records a visit and applies its loyalty effects."""

import logging
from dataclasses import dataclass

from django.db import transaction

from rewardman.exceptions import RewardmanError
from rewardman.identifiers import random_receipt_number
from rewardman.models import Customer, Purchase
from rewardman.points import points_for_purchase, role_after_visit
from rewardman.services.customer import CustomerService
from rewardman.signals import purchase_recorded

logger = logging.getLogger(__name__)


@dataclass
class PurchaseResult:
    """Outcome of PurchaseService.record()."""

    purchase: Purchase
    customer: Customer
    promoted: bool = False
    previous_role: str | None = None


class PurchaseService:
    """
    Service for purchase recording.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    @classmethod
    def record(
        cls,
        customer_id,
        amount: int,
        receipt_number: str | None = None,
    ) -> PurchaseResult:
        """
        Record a purchase and update the customer in one atomic unit.

        Effects (all or nothing):
            1. Purchase row with points computed from the current role
            2. points += points_earned
            3. total_spent += amount
            4. visit_count += 1
            5. role = role_after_visit(role, visit_count)

        Args:
            customer_id: Public id of the customer
            amount: Positive whole-unit amount
            receipt_number: Receipt reference; generated when omitted

        Returns:
            PurchaseResult

        Raises:
            RewardmanError: VALIDATION_ERROR (amount), CUSTOMER_NOT_FOUND
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise RewardmanError(
                "VALIDATION_ERROR",
                message="Amount must be positive",
                field="amount",
            )

        with transaction.atomic():
            customer = CustomerService.get_for_update(customer_id)

            points_earned = points_for_purchase(amount, customer.role)
            purchase = Purchase.objects.create(
                customer=customer,
                amount=amount,
                points_earned=points_earned,
                receipt_number=receipt_number or random_receipt_number(),
            )

            previous_role = customer.role
            customer.points += points_earned
            customer.total_spent += amount
            customer.visit_count += 1
            customer.role = role_after_visit(customer.role, customer.visit_count)
            customer.save(
                update_fields=["points", "total_spent", "visit_count", "role", "updated_at"]
            )

            promoted = customer.role != previous_role
            transaction.on_commit(
                lambda: purchase_recorded.send(
                    sender=Customer,
                    customer=customer,
                    purchase=purchase,
                    promoted=promoted,
                )
            )

        logger.info(
            "Purchase %s for %s: amount=%s points=+%s",
            purchase.receipt_number,
            customer.loyalty_id,
            amount,
            points_earned,
        )
        if promoted:
            logger.info(
                "Customer %s promoted %s -> %s at visit %s",
                customer.loyalty_id,
                previous_role,
                customer.role,
                customer.visit_count,
            )

        return PurchaseResult(
            purchase=purchase,
            customer=customer,
            promoted=promoted,
            previous_role=previous_role,
        )

    @classmethod
    def list_for_customer(cls, customer_id) -> list[Purchase]:
        """Purchase history for a customer, newest first."""
        customer = CustomerService.get(customer_id)
        return list(customer.purchases.select_related("customer").order_by("-timestamp"))
