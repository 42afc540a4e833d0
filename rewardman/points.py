"""
Points engine - accrual per purchase and visit-driven role promotion.

Pure functions of their arguments (and REWARDMAN settings). Persisting the
result is the job of PurchaseService.
"""

import math

from rewardman.conf import rewardman_settings
from rewardman.models.customer import CustomerRole

# Explicit promotion order for non-admin roles. ADMIN is not part of it.
PROMOTION_ORDER = [CustomerRole.NORMAL, CustomerRole.LOYAL, CustomerRole.OWNER]


def multiplier_for(role: str) -> float:
    """Points multiplier for a role; unknown roles get the default."""
    return rewardman_settings.ROLE_MULTIPLIERS.get(
        str(role), rewardman_settings.DEFAULT_MULTIPLIER
    )


def points_for_purchase(amount: int, role: str) -> int:
    """
    Points earned by a purchase.

    base = floor(amount / POINTS_DIVISOR), then floor(base * multiplier).
    Always truncates, never rounds:

        points_for_purchase(2500, "NORMAL") -> 27   # floor(25 * 1.1)
        points_for_purchase(99, "OWNER")    -> 0

    Args:
        amount: Purchase amount in whole currency units (validated upstream)
        role: Customer role at the time of purchase

    Returns:
        Non-negative integer
    """
    base_points = int(amount) // rewardman_settings.POINTS_DIVISOR
    return math.floor(base_points * multiplier_for(role))


def _visit_thresholds() -> list[tuple[int, str]]:
    return [
        (rewardman_settings.OWNER_VISIT_THRESHOLD, CustomerRole.OWNER),
        (rewardman_settings.LOYAL_VISIT_THRESHOLD, CustomerRole.LOYAL),
    ]


def role_after_visit(current_role: str, new_visit_count: int) -> str:
    """
    Role after a visit, given the visit count *including* that visit.

    Admins are never touched. Other roles only move forward along
    PROMOTION_ORDER: a role set higher by an admin is kept even if the
    visit count alone would map to a lower one.
    """
    if current_role == CustomerRole.ADMIN:
        return CustomerRole.ADMIN

    earned = None
    for threshold, role in _visit_thresholds():
        if new_visit_count >= threshold:
            earned = role
            break

    if earned is None:
        return current_role
    if current_role not in PROMOTION_ORDER:
        return earned
    if PROMOTION_ORDER.index(earned) > PROMOTION_ORDER.index(current_role):
        return earned
    return current_role
