"""Customer model - identity, credential and loyalty state."""

import uuid as uuid_lib

from django.contrib.auth.hashers import check_password, make_password
from django.db import models
from django.utils.translation import gettext_lazy as _


class CustomerRole(models.TextChoices):
    """
    Customer tier or administrative flag.

    NORMAL/LOYAL/OWNER form the promotion ladder (see rewardman.points).
    ADMIN is orthogonal: full administrative access, never promoted.
    """

    NORMAL = "NORMAL", _("Normal")
    LOYAL = "LOYAL", _("Loyal")
    OWNER = "OWNER", _("Owner")
    ADMIN = "ADMIN", _("Admin")


class Customer(models.Model):
    """
    Loyalty program member.

    ``uuid`` is the public identifier; the integer pk never leaves the app.
    ``points``, ``total_spent``, ``visit_count`` and ``role`` are only
    mutated through PurchaseService/CouponService (or an explicit admin
    update), always on a row locked with select_for_update().
    """

    uuid = models.UUIDField(default=uuid_lib.uuid4, editable=False, unique=True)
    loyalty_id = models.CharField(
        _("loyalty ID"),
        max_length=20,
        unique=True,
        help_text=_("Login identifier (ex: CUST003). Immutable."),
    )

    # Profile
    name = models.CharField(_("name"), max_length=200)
    email = models.EmailField(_("email"), unique=True)
    phone = models.CharField(_("phone"), max_length=20)

    # Credential (8-digit PIN, hashed)
    pin_hash = models.CharField(_("PIN hash"), max_length=128)

    # Loyalty state
    points = models.PositiveIntegerField(_("points"), default=0)
    total_spent = models.PositiveBigIntegerField(_("total spent"), default=0)
    visit_count = models.PositiveIntegerField(_("visits"), default=0)
    role = models.CharField(
        _("role"),
        max_length=10,
        choices=CustomerRole.choices,
        default=CustomerRole.NORMAL,
        db_index=True,
    )

    # Audit
    created_at = models.DateTimeField(_("created at"), auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("customer")
        verbose_name_plural = _("customers")
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} ({self.loyalty_id})"

    @property
    def is_admin(self) -> bool:
        return self.role == CustomerRole.ADMIN

    def set_pin(self, raw_pin: str) -> None:
        self.pin_hash = make_password(raw_pin)

    def check_pin(self, raw_pin: str) -> bool:
        return check_password(raw_pin, self.pin_hash)

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.lower().strip()
        super().save(*args, **kwargs)
