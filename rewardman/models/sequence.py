"""
IdentifierSequence - serialized allocation of human-readable numbers.

One row per namespace. allocate() locks the row, so two transactions
creating customers (or coupons) at the same time never read the same
"last assigned number".
"""

from collections.abc import Callable

from django.db import IntegrityError, models, transaction
from django.utils.translation import gettext_lazy as _


class SequenceNamespace(models.TextChoices):
    LOYALTY_ID = "loyalty_id", _("Loyalty ID")
    COUPON_CODE = "coupon_code", _("Coupon code")


class IdentifierSequence(models.Model):
    namespace = models.CharField(
        _("namespace"),
        max_length=30,
        choices=SequenceNamespace.choices,
        unique=True,
    )
    last_value = models.PositiveIntegerField(_("last value"), default=0)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("identifier sequence")
        verbose_name_plural = _("identifier sequences")

    def __str__(self):
        return f"{self.namespace}: {self.last_value}"

    @classmethod
    def allocate(cls, namespace: str, seed: Callable[[], int] | None = None) -> int:
        """
        Return the last assigned number and advance the sequence by one.

        MUST be called inside transaction.atomic(); the lock is held until
        the caller's transaction ends.

        Args:
            namespace: SequenceNamespace value
            seed: Called once, when the namespace has no row yet, to find
                the highest number already in use (legacy rows)

        Returns:
            The previous last_value (pass it to next_loyalty_id etc.)
        """
        sequence = cls._get_for_update(namespace)
        if sequence is None:
            initial = seed() if seed else 0
            try:
                with transaction.atomic():
                    cls.objects.create(namespace=namespace, last_value=initial)
            except IntegrityError:
                # Created by a concurrent transaction; use that row.
                pass
            sequence = cls._get_for_update(namespace)

        last = sequence.last_value
        sequence.last_value = last + 1
        sequence.save(update_fields=["last_value", "updated_at"])
        return last

    @classmethod
    def reset(cls, namespace: str, value: int = 0) -> "IdentifierSequence":
        """Set a namespace's last value (seeding, data repair)."""
        sequence, _created = cls.objects.update_or_create(
            namespace=namespace,
            defaults={"last_value": value},
        )
        return sequence

    @classmethod
    def _get_for_update(cls, namespace: str) -> "IdentifierSequence | None":
        return cls.objects.select_for_update().filter(namespace=namespace).first()
