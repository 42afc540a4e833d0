"""Rewardman services.

    from rewardman.services import CustomerService, PurchaseService, CouponService

    customer, pin = CustomerService.create("Anna", "anna@example.com", "+36302222222")
    result = PurchaseService.record(customer.uuid, 2500)
    coupon = CouponService.create(customer.uuid)
    CouponService.redeem(coupon.code)
"""

from rewardman.services.customer import CustomerService
from rewardman.services.purchase import PurchaseResult, PurchaseService
from rewardman.services.coupon import CouponService
from rewardman.services.auth import AuthService, LoginResult

__all__ = [
    "CustomerService",
    "PurchaseService",
    "PurchaseResult",
    "CouponService",
    "AuthService",
    "LoginResult",
]
