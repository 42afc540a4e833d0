"""Management command to load the demo loyalty data set."""

from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone

from rewardman.models import (
    Coupon,
    Customer,
    CustomerRole,
    IdentifierSequence,
    Purchase,
    SequenceNamespace,
)

DEMO_CUSTOMERS = [
    {
        "loyalty_id": "ADMIN001",
        "name": "Admin User",
        "email": "admin@fastfood.hu",
        "phone": "+36301234567",
        "pin": "12345678",
        "points": 0,
        "total_spent": 0,
        "visit_count": 0,
        "role": CustomerRole.ADMIN,
    },
    {
        "loyalty_id": "CUST001",
        "name": "Nagy Péter",
        "email": "peter.nagy@email.hu",
        "phone": "+36301111111",
        "pin": "11111111",
        "points": 85,
        "total_spent": 12500,
        "visit_count": 12,
        "role": CustomerRole.NORMAL,
    },
    {
        "loyalty_id": "CUST002",
        "name": "Kovács Anna",
        "email": "anna.kovacs@email.hu",
        "phone": "+36302222222",
        "pin": "22222222",
        "points": 140,
        "total_spent": 32000,
        "visit_count": 25,
        "role": CustomerRole.LOYAL,
    },
    {
        "loyalty_id": "CUST003",
        "name": "Szabó János",
        "email": "janos.szabo@email.hu",
        "phone": "+36303333333",
        "pin": "33333333",
        "points": 220,
        "total_spent": 65000,
        "visit_count": 45,
        "role": CustomerRole.OWNER,
    },
]

# (loyalty_id, amount, points_earned, receipt_number, days_ago)
DEMO_PURCHASES = [
    ("CUST001", 2500, 27, "RCP-001", 2),
    ("CUST002", 3200, 44, "RCP-002", 5),
    ("CUST003", 4500, 76, "RCP-003", 7),
]

# (code, loyalty_id, days_ago, redeemed_days_ago)
DEMO_COUPONS = [
    ("COUP-2024-001", "CUST002", 10, None),
    ("COUP-2024-002", "CUST003", 20, 15),
]


class Command(BaseCommand):
    help = "Delete all customers, purchases and coupons and load the demo data set"

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-input",
            action="store_false",
            dest="interactive",
            help="Do not ask for confirmation",
        )

    def handle(self, *args, **options):
        if options["interactive"]:
            answer = input("This deletes ALL loyalty data. Type 'yes' to continue: ")
            if answer != "yes":
                raise CommandError("Seed cancelled.")

        now = timezone.now()

        with transaction.atomic():
            Coupon.objects.all().delete()
            Purchase.objects.all().delete()
            Customer.objects.all().delete()
            self.stdout.write("Cleared existing data")

            customers = {}
            for data in DEMO_CUSTOMERS:
                data = dict(data)
                pin = data.pop("pin")
                customer = Customer(**data)
                customer.set_pin(pin)
                customer.save()
                customers[customer.loyalty_id] = customer
            self.stdout.write(f"Created {len(customers)} customers")

            for loyalty_id, amount, points_earned, receipt, days_ago in DEMO_PURCHASES:
                Purchase.objects.create(
                    customer=customers[loyalty_id],
                    amount=amount,
                    points_earned=points_earned,
                    receipt_number=receipt,
                    timestamp=now - timedelta(days=days_ago),
                )
            self.stdout.write(f"Created {len(DEMO_PURCHASES)} purchases")

            for code, loyalty_id, days_ago, redeemed_days_ago in DEMO_COUPONS:
                coupon = Coupon.objects.create(
                    code=code,
                    customer=customers[loyalty_id],
                    redeemed=redeemed_days_ago is not None,
                    redeemed_at=(
                        now - timedelta(days=redeemed_days_ago)
                        if redeemed_days_ago is not None
                        else None
                    ),
                )
                # auto_now_add ignores values passed to create()
                Coupon.objects.filter(pk=coupon.pk).update(
                    created_at=now - timedelta(days=days_ago)
                )
            self.stdout.write(f"Created {len(DEMO_COUPONS)} coupons")

            IdentifierSequence.reset(SequenceNamespace.LOYALTY_ID, 3)
            IdentifierSequence.reset(SequenceNamespace.COUPON_CODE, len(DEMO_COUPONS))

        self.stdout.write(self.style.SUCCESS("Database seeded successfully."))
        self.stdout.write("Demo accounts:")
        for data in DEMO_CUSTOMERS:
            self.stdout.write(f"  {data['loyalty_id']} / {data['pin']}")
