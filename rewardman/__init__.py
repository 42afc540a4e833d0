"""
Rewardman - Loyalty points and coupons.

Usage:
    from rewardman import CustomerService, PurchaseService, CouponService
    from rewardman.gates import AccessGates

    customer, pin = CustomerService.create("Anna", "anna@example.com", "+36302222222")
    PurchaseService.record(customer.uuid, 2500)       # +27 points as NORMAL
    coupon = CouponService.create(customer.uuid)      # -100 points
    CouponService.redeem(coupon.code)

    # Access gates
    AccessGates.admin_only(identity)
    AccessGates.self_or_admin(identity, customer_id)
"""


def __getattr__(name):
    if name == "CustomerService":
        from rewardman.services.customer import CustomerService

        return CustomerService
    if name == "PurchaseService":
        from rewardman.services.purchase import PurchaseService

        return PurchaseService
    if name == "CouponService":
        from rewardman.services.coupon import CouponService

        return CouponService
    if name == "AuthService":
        from rewardman.services.auth import AuthService

        return AuthService
    if name == "RewardmanError":
        from rewardman.exceptions import RewardmanError

        return RewardmanError
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "CustomerService",
    "PurchaseService",
    "CouponService",
    "AuthService",
    "RewardmanError",
]
__version__ = "0.1.0"
