# Initial schema: customers, purchases, coupons and identifier sequences

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                (
                    "loyalty_id",
                    models.CharField(
                        help_text="Login identifier (ex: CUST003). Immutable.",
                        max_length=20,
                        unique=True,
                        verbose_name="loyalty ID",
                    ),
                ),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("email", models.EmailField(max_length=254, unique=True, verbose_name="email")),
                ("phone", models.CharField(max_length=20, verbose_name="phone")),
                ("pin_hash", models.CharField(max_length=128, verbose_name="PIN hash")),
                ("points", models.PositiveIntegerField(default=0, verbose_name="points")),
                (
                    "total_spent",
                    models.PositiveBigIntegerField(default=0, verbose_name="total spent"),
                ),
                ("visit_count", models.PositiveIntegerField(default=0, verbose_name="visits")),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("NORMAL", "Normal"),
                            ("LOYAL", "Loyal"),
                            ("OWNER", "Owner"),
                            ("ADMIN", "Admin"),
                        ],
                        db_index=True,
                        default="NORMAL",
                        max_length=10,
                        verbose_name="role",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at"),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "customer",
                "verbose_name_plural": "customers",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="IdentifierSequence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "namespace",
                    models.CharField(
                        choices=[
                            ("loyalty_id", "Loyalty ID"),
                            ("coupon_code", "Coupon code"),
                        ],
                        max_length=30,
                        unique=True,
                        verbose_name="namespace",
                    ),
                ),
                ("last_value", models.PositiveIntegerField(default=0, verbose_name="last value")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "identifier sequence",
                "verbose_name_plural": "identifier sequences",
            },
        ),
        migrations.CreateModel(
            name="Purchase",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                ("amount", models.PositiveIntegerField(verbose_name="amount")),
                ("points_earned", models.PositiveIntegerField(verbose_name="points earned")),
                ("receipt_number", models.CharField(max_length=100, verbose_name="receipt number")),
                (
                    "timestamp",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        verbose_name="timestamp",
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchases",
                        to="rewardman.customer",
                        verbose_name="customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "purchase",
                "verbose_name_plural": "purchases",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(
                        fields=["customer", "-timestamp"],
                        name="rewardman_purchase_cust_ts",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Coupon",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                (
                    "code",
                    models.CharField(
                        help_text="Human-readable code (ex: COUP-2024-003)",
                        max_length=30,
                        unique=True,
                        verbose_name="code",
                    ),
                ),
                ("value", models.PositiveIntegerField(default=1000, verbose_name="value")),
                ("redeemed", models.BooleanField(db_index=True, default=False, verbose_name="redeemed")),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="created at"),
                ),
                ("redeemed_at", models.DateTimeField(blank=True, null=True, verbose_name="redeemed at")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="coupons",
                        to="rewardman.customer",
                        verbose_name="customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "coupon",
                "verbose_name_plural": "coupons",
                "ordering": ["-created_at"],
            },
        ),
    ]
