"""
Human-readable identifiers.

Formatting only. Allocation of the next number is serialized by
``IdentifierSequence.allocate()``; these helpers never check uniqueness.

    next_loyalty_id(2)              -> "CUST003"
    next_coupon_code(2, 2024)       -> "COUP-2024-003"
    random_pin()                    -> "04918273"
    random_receipt_number()         -> "RCP-1718035200000-417"
"""

import re
import secrets
import time

from rewardman.conf import rewardman_settings

PIN_LENGTH = 8

_SUFFIX_RE = re.compile(r"(\d+)$")


def next_loyalty_id(last_number: int) -> str:
    """Loyalty ID following ``last_number`` (zero-padded to 3 digits)."""
    return f"{rewardman_settings.LOYALTY_ID_PREFIX}{last_number + 1:03d}"


def next_coupon_code(last_number: int, year: int) -> str:
    """Coupon code following ``last_number`` for the given year."""
    return f"{rewardman_settings.COUPON_CODE_PREFIX}-{year}-{last_number + 1:03d}"


def random_pin() -> str:
    """Eight uniformly drawn digits. Leading zeros are kept."""
    return "".join(secrets.choice("0123456789") for _ in range(PIN_LENGTH))


def random_receipt_number() -> str:
    """Receipt number used when the caller does not supply one."""
    millis = int(time.time() * 1000)
    return f"RCP-{millis}-{secrets.randbelow(1000)}"


def parse_loyalty_number(loyalty_id: str) -> int | None:
    """Numeric suffix of a prefixed loyalty ID, or None (e.g. ``ADMIN001``)."""
    prefix = rewardman_settings.LOYALTY_ID_PREFIX
    if not loyalty_id.startswith(prefix):
        return None
    suffix = loyalty_id[len(prefix):]
    return int(suffix) if suffix.isdigit() else None


def parse_coupon_number(code: str) -> int | None:
    """Numeric suffix after the last ``-`` of a coupon code, or None."""
    match = _SUFFIX_RE.search(code.rsplit("-", 1)[-1])
    return int(match.group(1)) if match else None
