"""Coupon service - points-for-coupon exchange and one-time redemption."""

import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from rewardman.conf import rewardman_settings
from rewardman.exceptions import RewardmanError
from rewardman.identifiers import next_coupon_code, parse_coupon_number
from rewardman.models import Coupon, Customer, IdentifierSequence, SequenceNamespace
from rewardman.services.customer import CustomerService
from rewardman.signals import coupon_created, coupon_redeemed

logger = logging.getLogger(__name__)


class CouponService:
    """
    Service for coupon operations.

    Uses @classmethod for extensibility (consistent with the other services).
    All balance mutations use transaction.atomic() on a locked customer row.
    """

    @classmethod
    def create(cls, customer_id) -> Coupon:
        """
        Exchange COUPON_COST points for a coupon worth COUPON_VALUE.

        The balance check runs on the locked row, so two concurrent requests
        against a balance of exactly COUPON_COST yield one coupon.

        Args:
            customer_id: Public id of the owning customer

        Returns:
            Created Coupon (redeemed=False)

        Raises:
            RewardmanError: CUSTOMER_NOT_FOUND, INSUFFICIENT_POINTS, CONFLICT
        """
        cost = rewardman_settings.COUPON_COST

        try:
            with transaction.atomic():
                customer = CustomerService.get_for_update(customer_id)

                if customer.points < cost:
                    raise RewardmanError(
                        "INSUFFICIENT_POINTS",
                        message=f"Not enough points. Need {cost} points to create a coupon.",
                        available=customer.points,
                        required=cost,
                    )

                last = IdentifierSequence.allocate(
                    SequenceNamespace.COUPON_CODE,
                    seed=cls._highest_coupon_number,
                )
                coupon = Coupon.objects.create(
                    code=next_coupon_code(last, timezone.localdate().year),
                    customer=customer,
                    value=rewardman_settings.COUPON_VALUE,
                )

                customer.points -= cost
                customer.save(update_fields=["points", "updated_at"])

                transaction.on_commit(
                    lambda: coupon_created.send(
                        sender=Customer, customer=customer, coupon=coupon
                    )
                )
        except IntegrityError as exc:
            raise RewardmanError("CONFLICT", message="Coupon code already exists") from exc

        logger.info(
            "Coupon %s created for %s (balance %s)",
            coupon.code,
            customer.loyalty_id,
            customer.points,
        )
        return coupon

    @classmethod
    def lookup(cls, code: str) -> Coupon:
        """
        Get coupon with its owner loaded. Read-only, whatever its state.

        Raises:
            RewardmanError: COUPON_NOT_FOUND
        """
        try:
            return Coupon.objects.select_related("customer").get(code=code)
        except Coupon.DoesNotExist:
            raise RewardmanError("COUPON_NOT_FOUND", code=code)

    @classmethod
    def redeem(cls, code: str) -> Coupon:
        """
        Mark a coupon redeemed. Points are not touched.

        The "not yet redeemed" check and the write are one conditional
        UPDATE; of two concurrent attempts exactly one succeeds.

        Raises:
            RewardmanError: COUPON_NOT_FOUND, ALREADY_REDEEMED
        """
        with transaction.atomic():
            updated = Coupon.objects.filter(code=code, redeemed=False).update(
                redeemed=True,
                redeemed_at=timezone.now(),
            )
            if not updated:
                if Coupon.objects.filter(code=code).exists():
                    raise RewardmanError("ALREADY_REDEEMED", code=code)
                raise RewardmanError("COUPON_NOT_FOUND", code=code)

            coupon = Coupon.objects.select_related("customer").get(code=code)
            transaction.on_commit(lambda: coupon_redeemed.send(sender=Coupon, coupon=coupon))

        logger.info("Coupon %s redeemed (owner %s)", coupon.code, coupon.customer.loyalty_id)
        return coupon

    @classmethod
    def list_for_customer(cls, customer_id) -> list[Coupon]:
        """Coupons of a customer, newest first."""
        customer = CustomerService.get(customer_id)
        return list(customer.coupons.select_related("customer").order_by("-created_at"))

    @classmethod
    def _highest_coupon_number(cls) -> int:
        """Highest numeric suffix among existing coupon codes."""
        numbers = (
            parse_coupon_number(code)
            for code in Coupon.objects.values_list("code", flat=True)
        )
        return max((n for n in numbers if n is not None), default=0)
