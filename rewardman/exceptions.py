"""Rewardman exceptions."""


class BaseError(Exception):
    """
    Structured exception carrying a stable code, a message and context data.

    Subclasses provide ``_default_messages`` so callers can raise by code only.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(f"[{code}] {self.message}")

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class RewardmanError(BaseError):
    """
    Structured exception for loyalty operations.

    Usage:
        try:
            CouponService.redeem("COUP-2024-001")
        except RewardmanError as e:
            if e.code == "ALREADY_REDEEMED":
                handle_reuse()
    """

    _default_messages = {
        "CUSTOMER_NOT_FOUND": "Customer not found",
        "COUPON_NOT_FOUND": "Coupon not found",
        "FORBIDDEN": "Access denied",
        "INSUFFICIENT_POINTS": "Not enough points to create a coupon",
        "ALREADY_REDEEMED": "Coupon already redeemed",
        "CONFLICT": "Resource already exists",
        "VALIDATION_ERROR": "Validation failed",
        "INVALID_CREDENTIALS": "Invalid loyalty ID or PIN code",
        "INVALID_TOKEN": "Invalid or expired token",
        "AUTHENTICATION_REQUIRED": "Authentication required",
    }
