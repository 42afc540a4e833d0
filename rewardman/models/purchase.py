"""Purchase model - immutable record of one recorded transaction."""

import uuid as uuid_lib

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Purchase(models.Model):
    """
    One visit. Points are computed at creation and frozen.

    Created only by PurchaseService.record(); never modified afterwards.
    """

    uuid = models.UUIDField(default=uuid_lib.uuid4, editable=False, unique=True)
    customer = models.ForeignKey(
        "rewardman.Customer",
        on_delete=models.CASCADE,
        related_name="purchases",
        verbose_name=_("customer"),
    )
    amount = models.PositiveIntegerField(_("amount"))
    points_earned = models.PositiveIntegerField(_("points earned"))
    receipt_number = models.CharField(_("receipt number"), max_length=100)
    timestamp = models.DateTimeField(_("timestamp"), default=timezone.now, db_index=True)

    class Meta:
        verbose_name = _("purchase")
        verbose_name_plural = _("purchases")
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["customer", "-timestamp"], name="rewardman_purchase_cust_ts"),
        ]

    def __str__(self):
        return f"{self.receipt_number}: {self.amount} (+{self.points_earned}pts)"
