"""
Rewardman Gates - access control rules.

A1: Authenticated - an actor must be present
A2: AdminOnly - actor must be ADMIN
A3: SelfOrAdmin - non-admins may only touch their own customer record
A4: SelfOnly - self-service operations (coupon creation)
A5: SelfUpdateFields - non-admins may only edit profile fields

Every gate raises RewardmanError("FORBIDDEN") (or
"AUTHENTICATION_REQUIRED" for A1) before any side effect.
"""

import logging
from dataclasses import dataclass

from rewardman.exceptions import RewardmanError
from rewardman.protocols import Identity

logger = logging.getLogger(__name__)


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


# =============================================================================
# Gates
# =============================================================================


class AccessGates:
    """Permission matrix for loyalty operations."""

    # Fields a customer may change on their own record
    SELF_UPDATE_FIELDS = {"name", "email", "phone"}

    # Fields an admin may change on any record
    ADMIN_UPDATE_FIELDS = SELF_UPDATE_FIELDS | {"points", "role"}

    # =========================================================================
    # A1: Authenticated
    # =========================================================================

    @classmethod
    def authenticated(cls, actor: Identity | None) -> GateResult:
        """A1: An authenticated actor is required."""
        if actor is None:
            raise RewardmanError("AUTHENTICATION_REQUIRED", gate="A1_Authenticated")
        return GateResult(True, "A1_Authenticated")

    # =========================================================================
    # A2: Admin only
    # =========================================================================

    @classmethod
    def admin_only(cls, actor: Identity | None) -> GateResult:
        """
        A2: Actor must be an administrator.

        Raises:
            RewardmanError: FORBIDDEN if the actor is not ADMIN
        """
        cls.authenticated(actor)
        if not actor.is_admin:
            cls._deny("A2_AdminOnly", actor, message="Admin access required")
        return GateResult(True, "A2_AdminOnly")

    @classmethod
    def check_admin_only(cls, actor: Identity | None) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.admin_only(actor)
            return True
        except RewardmanError:
            return False

    # =========================================================================
    # A3: Self or admin
    # =========================================================================

    @classmethod
    def self_or_admin(cls, actor: Identity | None, customer_id) -> GateResult:
        """
        A3: Admins pass; everyone else only for their own customer id.

        Args:
            actor: Authenticated identity
            customer_id: Public id (UUID) of the customer owning the target
        """
        cls.authenticated(actor)
        if not actor.is_admin and not cls._is_self(actor, customer_id):
            cls._deny("A3_SelfOrAdmin", actor, customer_id=str(customer_id))
        return GateResult(True, "A3_SelfOrAdmin")

    @classmethod
    def check_self_or_admin(cls, actor: Identity | None, customer_id) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.self_or_admin(actor, customer_id)
            return True
        except RewardmanError:
            return False

    # =========================================================================
    # A4: Self only
    # =========================================================================

    @classmethod
    def self_only(cls, actor: Identity | None, customer_id) -> GateResult:
        """A4: Only the owning customer, admins included, acts for itself."""
        cls.authenticated(actor)
        if not cls._is_self(actor, customer_id):
            cls._deny("A4_SelfOnly", actor, customer_id=str(customer_id))
        return GateResult(True, "A4_SelfOnly")

    @classmethod
    def check_self_only(cls, actor: Identity | None, customer_id) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.self_only(actor, customer_id)
            return True
        except RewardmanError:
            return False

    # =========================================================================
    # A5: Self-update fields
    # =========================================================================

    @classmethod
    def update_fields(cls, actor: Identity | None, fields) -> GateResult:
        """
        A5: Non-admins may not change role, points or anything but profile.

        Args:
            actor: Authenticated identity
            fields: Iterable of field names the update touches
        """
        cls.authenticated(actor)
        allowed = cls.ADMIN_UPDATE_FIELDS if actor.is_admin else cls.SELF_UPDATE_FIELDS
        denied = sorted(set(fields) - allowed)
        if denied:
            message = (
                "Only admin can change role"
                if "role" in denied and not actor.is_admin
                else f"Fields not updatable: {', '.join(denied)}"
            )
            cls._deny("A5_SelfUpdateFields", actor, message=message, fields=denied)
        return GateResult(True, "A5_SelfUpdateFields")

    @classmethod
    def check_update_fields(cls, actor: Identity | None, fields) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.update_fields(actor, fields)
            return True
        except RewardmanError:
            return False

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _is_self(actor: Identity, customer_id) -> bool:
        return str(actor.id) == str(customer_id)

    @staticmethod
    def _deny(gate_name: str, actor: Identity, message: str | None = None, **data):
        logger.warning(
            "%s denied for %s (%s)", gate_name, actor.loyalty_id, actor.role
        )
        raise RewardmanError("FORBIDDEN", message=message, gate=gate_name, **data)
