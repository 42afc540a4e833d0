"""Coupon model - reward unit bought with points, redeemable once."""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


class Coupon(models.Model):
    """
    Redeemable coupon.

    ``redeemed`` only ever goes False -> True, through the conditional
    update in CouponService.redeem().
    """

    uuid = models.UUIDField(default=uuid_lib.uuid4, editable=False, unique=True)
    code = models.CharField(
        _("code"),
        max_length=30,
        unique=True,
        help_text=_("Human-readable code (ex: COUP-2024-003)"),
    )
    customer = models.ForeignKey(
        "rewardman.Customer",
        on_delete=models.CASCADE,
        related_name="coupons",
        verbose_name=_("customer"),
    )
    value = models.PositiveIntegerField(_("value"), default=1000)
    redeemed = models.BooleanField(_("redeemed"), default=False, db_index=True)
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    redeemed_at = models.DateTimeField(_("redeemed at"), null=True, blank=True)

    class Meta:
        verbose_name = _("coupon")
        verbose_name_plural = _("coupons")
        ordering = ["-created_at"]

    def __str__(self):
        status = "redeemed" if self.redeemed else "active"
        return f"{self.code} ({status})"
