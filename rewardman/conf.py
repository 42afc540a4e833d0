"""
Rewardman configuration.

Usage in settings.py:
    REWARDMAN = {
        "COUPON_COST": 100,
        "ACCESS_TOKEN_TTL": 900,
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


def _default_multipliers() -> dict[str, float]:
    return {
        "NORMAL": 1.1,
        "LOYAL": 1.4,
        "OWNER": 1.7,
        "ADMIN": 1.0,
    }


@dataclass
class RewardmanSettings:
    """Rewardman configuration settings."""

    # Points accrual: one base point per POINTS_DIVISOR currency units
    POINTS_DIVISOR: int = 100
    ROLE_MULTIPLIERS: dict[str, float] = field(default_factory=_default_multipliers)
    DEFAULT_MULTIPLIER: float = 1.0

    # Role promotion (visit count after the current purchase)
    LOYAL_VISIT_THRESHOLD: int = 20
    OWNER_VISIT_THRESHOLD: int = 50

    # Coupons
    COUPON_COST: int = 100
    COUPON_VALUE: int = 1000

    # Identifiers
    LOYALTY_ID_PREFIX: str = "CUST"
    COUPON_CODE_PREFIX: str = "COUP"

    # Credential tokens (seconds) and backend (dotted path)
    CREDENTIAL_BACKEND: str = "rewardman.services.auth.SignedTokenBackend"
    ACCESS_TOKEN_TTL: int = 15 * 60
    REFRESH_TOKEN_TTL: int = 7 * 24 * 60 * 60


def get_rewardman_settings() -> RewardmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "REWARDMAN", {})
    return RewardmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_rewardman_settings(), name)


rewardman_settings = _LazySettings()
