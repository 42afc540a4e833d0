"""Customer service - CRUD, loyalty ID allocation and PIN handling.

All writes run inside transaction.atomic(); mutations of loyalty state lock
the customer row with select_for_update().
"""

import logging
import uuid as uuid_lib

from django.db import IntegrityError, transaction

from rewardman.exceptions import RewardmanError
from rewardman.gates import AccessGates
from rewardman.identifiers import (
    PIN_LENGTH,
    next_loyalty_id,
    parse_loyalty_number,
    random_pin,
)
from rewardman.models import Customer, CustomerRole, IdentifierSequence, SequenceNamespace
from rewardman.signals import customer_created, customer_updated

logger = logging.getLogger(__name__)


class CustomerService:
    """
    Service for customer records.

    Uses @classmethod for extensibility (consistent with the other services).
    ``customer_id`` is always the public UUID (string or uuid.UUID).
    """

    # ======================================================================
    # Reads
    # ======================================================================

    @classmethod
    def get(cls, customer_id) -> Customer:
        """
        Get customer by public id.

        Raises:
            RewardmanError: CUSTOMER_NOT_FOUND
        """
        try:
            return Customer.objects.get(uuid=cls._parse_id(customer_id))
        except Customer.DoesNotExist:
            raise RewardmanError("CUSTOMER_NOT_FOUND", customer_id=str(customer_id))

    @classmethod
    def get_for_update(cls, customer_id) -> Customer:
        """
        Get customer with row-level lock for mutation.

        MUST be called inside transaction.atomic().
        Prevents lost updates on concurrent purchase/coupon operations.
        """
        try:
            return Customer.objects.select_for_update().get(uuid=cls._parse_id(customer_id))
        except Customer.DoesNotExist:
            raise RewardmanError("CUSTOMER_NOT_FOUND", customer_id=str(customer_id))

    @classmethod
    def get_by_loyalty_id(cls, loyalty_id: str) -> Customer | None:
        """Get customer by loyalty ID (login identifier)."""
        try:
            return Customer.objects.get(loyalty_id=loyalty_id)
        except Customer.DoesNotExist:
            return None

    @classmethod
    def list_all(cls) -> list[Customer]:
        """All customers, newest first."""
        return list(Customer.objects.order_by("-created_at"))

    # ======================================================================
    # Writes
    # ======================================================================

    @classmethod
    def create(
        cls,
        name: str,
        email: str,
        phone: str,
        pin: str | None = None,
    ) -> tuple[Customer, str]:
        """
        Create a NORMAL customer with zero points.

        Args:
            name: Display name
            email: Unique email
            phone: Phone number
            pin: 8-digit PIN; generated when omitted

        Returns:
            Tuple of (Customer, plain PIN). The plain PIN is not stored and
            this is the only place it is ever returned.

        Raises:
            RewardmanError: CONFLICT if the email is taken,
                VALIDATION_ERROR if the PIN is malformed
        """
        if pin and not (pin.isascii() and pin.isdigit() and len(pin) == PIN_LENGTH):
            raise RewardmanError(
                "VALIDATION_ERROR",
                message="PIN code must be 8 digits",
                field="pinCode",
            )

        email = email.lower().strip()
        if Customer.objects.filter(email=email).exists():
            raise RewardmanError("CONFLICT", message="Email already registered", field="email")

        plain_pin = pin or random_pin()

        try:
            with transaction.atomic():
                last = IdentifierSequence.allocate(
                    SequenceNamespace.LOYALTY_ID,
                    seed=cls._highest_loyalty_number,
                )
                customer = Customer(
                    loyalty_id=next_loyalty_id(last),
                    name=name,
                    email=email,
                    phone=phone,
                    role=CustomerRole.NORMAL,
                )
                customer.set_pin(plain_pin)
                customer.save()
                transaction.on_commit(
                    lambda: customer_created.send(sender=Customer, customer=customer)
                )
        except IntegrityError as exc:
            raise RewardmanError("CONFLICT", message="Customer already exists") from exc

        logger.info("Customer %s created", customer.loyalty_id)
        return customer, plain_pin

    @classmethod
    def update(cls, customer_id, **fields) -> Customer:
        """
        Update customer fields.

        Access rules (which fields an actor may pass) are enforced by the
        caller through AccessGates.update_fields(); here only the admin
        field set is accepted.

        Args:
            customer_id: Public id
            **fields: Any of name, email, phone, points, role

        Returns:
            Updated Customer

        Raises:
            RewardmanError: CUSTOMER_NOT_FOUND, CONFLICT (email taken),
                VALIDATION_ERROR (unknown field, bad role, negative points)
        """
        unknown = sorted(set(fields) - AccessGates.ADMIN_UPDATE_FIELDS)
        if unknown:
            raise RewardmanError(
                "VALIDATION_ERROR",
                message=f"Unknown fields: {', '.join(unknown)}",
                fields=unknown,
            )
        if "role" in fields and fields["role"] not in CustomerRole.values:
            raise RewardmanError("VALIDATION_ERROR", message="Invalid role", field="role")
        if "points" in fields and (
            isinstance(fields["points"], bool)
            or not isinstance(fields["points"], int)
            or fields["points"] < 0
        ):
            raise RewardmanError(
                "VALIDATION_ERROR",
                message="Points must be a non-negative integer",
                field="points",
            )
        if "email" in fields:
            fields["email"] = fields["email"].lower().strip()

        try:
            with transaction.atomic():
                customer = cls.get_for_update(customer_id)

                if "email" in fields and (
                    Customer.objects.filter(email=fields["email"])
                    .exclude(pk=customer.pk)
                    .exists()
                ):
                    raise RewardmanError(
                        "CONFLICT", message="Email already registered", field="email"
                    )

                changes = {}
                for key, value in fields.items():
                    old = getattr(customer, key)
                    if old != value:
                        changes[key] = (old, value)
                        setattr(customer, key, value)

                if changes:
                    customer.save(update_fields=[*changes, "updated_at"])
                    transaction.on_commit(
                        lambda: customer_updated.send(
                            sender=Customer, customer=customer, changes=changes
                        )
                    )
        except IntegrityError as exc:
            raise RewardmanError("CONFLICT", message="Email already registered") from exc

        if changes:
            logger.info("Customer %s updated: %s", customer.loyalty_id, sorted(changes))
        return customer

    @classmethod
    def delete(cls, customer_id) -> None:
        """
        Delete customer. Purchases and coupons go with it (CASCADE).

        Raises:
            RewardmanError: CUSTOMER_NOT_FOUND
        """
        customer = cls.get(customer_id)
        loyalty_id = customer.loyalty_id
        customer.delete()
        logger.info("Customer %s deleted", loyalty_id)

    # ======================================================================
    # Helpers
    # ======================================================================

    @staticmethod
    def _parse_id(customer_id) -> uuid_lib.UUID:
        if isinstance(customer_id, uuid_lib.UUID):
            return customer_id
        try:
            return uuid_lib.UUID(str(customer_id))
        except ValueError:
            raise RewardmanError("CUSTOMER_NOT_FOUND", customer_id=str(customer_id))

    @classmethod
    def _highest_loyalty_number(cls) -> int:
        """Highest numeric suffix among existing prefixed loyalty IDs."""
        numbers = (
            parse_loyalty_number(loyalty_id)
            for loyalty_id in Customer.objects.values_list("loyalty_id", flat=True)
        )
        return max((n for n in numbers if n is not None), default=0)
