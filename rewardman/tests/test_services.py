"""Tests for Rewardman services."""

import pytest
from django.db import transaction
from django.utils import timezone

from rewardman.exceptions import RewardmanError
from rewardman.models import Coupon, Customer, CustomerRole, Purchase
from rewardman.services import CouponService, CustomerService, PurchaseService
from rewardman.signals import (
    coupon_created,
    coupon_redeemed,
    customer_created,
    purchase_recorded,
)

from .conftest import make_customer

pytestmark = pytest.mark.django_db


def _set(customer, **fields):
    Customer.objects.filter(pk=customer.pk).update(**fields)
    customer.refresh_from_db()
    return customer


# ═══════════════════════════════════════════════════════════════════
# CustomerService
# ═══════════════════════════════════════════════════════════════════


class TestCustomerServiceCreate:
    def test_create_defaults(self, db):
        customer, pin = CustomerService.create(
            name="Szabó János",
            email="Janos.Szabo@email.hu",
            phone="+36303333333",
            pin="33333333",
        )

        assert customer.loyalty_id == "CUST001"
        assert customer.role == CustomerRole.NORMAL
        assert customer.points == 0
        assert customer.email == "janos.szabo@email.hu"
        assert pin == "33333333"
        assert customer.check_pin("33333333")

    def test_loyalty_ids_sequential(self, db):
        first, _ = CustomerService.create("Anna", "a@example.com", "+36301111111")
        second, _ = CustomerService.create("Bela", "b@example.com", "+36302222222")
        assert (first.loyalty_id, second.loyalty_id) == ("CUST001", "CUST002")

    def test_continues_after_existing_ids(self, db):
        """First allocation starts after the highest legacy CUST number."""
        make_customer("CUST007", "legacy@example.com")
        make_customer("ADMIN001", "admin@example.com", role=CustomerRole.ADMIN)

        customer, _ = CustomerService.create("New", "new@example.com", "+36301111111")
        assert customer.loyalty_id == "CUST008"

    def test_generates_pin(self, db):
        customer, pin = CustomerService.create("Anna", "a@example.com", "+36301111111")
        assert len(pin) == 8 and pin.isdigit()
        assert customer.check_pin(pin)
        assert pin not in customer.pin_hash

    def test_duplicate_email_conflict(self, customer):
        with pytest.raises(RewardmanError, match="CONFLICT"):
            CustomerService.create("Copy", "PETER.NAGY@email.hu", "+36301111111")
        assert Customer.objects.count() == 1

    def test_malformed_pin(self, db):
        with pytest.raises(RewardmanError, match="VALIDATION_ERROR"):
            CustomerService.create("Anna", "a@example.com", "+36301111111", pin="1234")

    @pytest.mark.parametrize(
        "pin",
        [
            "\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668",  # Arabic-Indic digits
            "1234567\u00b2",  # superscript two
        ],
    )
    def test_non_ascii_digit_pin(self, db, pin):
        """Only ASCII 0-9 count as PIN digits."""
        with pytest.raises(RewardmanError, match="VALIDATION_ERROR"):
            CustomerService.create("Anna", "a@example.com", "+36301111111", pin=pin)
        assert not Customer.objects.exists()

    def test_signal_after_commit(self, db, django_capture_on_commit_callbacks):
        received = []

        def handler(sender, customer, **kwargs):
            received.append(customer.loyalty_id)

        customer_created.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                CustomerService.create("Anna", "a@example.com", "+36301111111")
        finally:
            customer_created.disconnect(handler)

        assert received == ["CUST001"]


class TestCustomerServiceReadUpdateDelete:
    def test_get(self, customer):
        assert CustomerService.get(str(customer.uuid)) == customer
        assert CustomerService.get(customer.uuid) == customer

    def test_get_unknown(self, db):
        with pytest.raises(RewardmanError, match="CUSTOMER_NOT_FOUND"):
            CustomerService.get("00000000-0000-0000-0000-000000000000")

    def test_get_malformed_id(self, db):
        with pytest.raises(RewardmanError, match="CUSTOMER_NOT_FOUND"):
            CustomerService.get("not-a-uuid")

    def test_get_by_loyalty_id(self, customer):
        assert CustomerService.get_by_loyalty_id("CUST001") == customer
        assert CustomerService.get_by_loyalty_id("CUST404") is None

    def test_list_all(self, customer, other_customer):
        assert set(CustomerService.list_all()) == {customer, other_customer}

    def test_update_profile(self, customer):
        updated = CustomerService.update(customer.uuid, name="Nagy Péter Jr.", phone="+36309999999")
        assert updated.name == "Nagy Péter Jr."
        customer.refresh_from_db()
        assert customer.phone == "+36309999999"

    def test_update_role_and_points(self, customer):
        updated = CustomerService.update(customer.uuid, role="OWNER", points=500)
        assert updated.role == CustomerRole.OWNER
        assert updated.points == 500

    def test_update_email_conflict(self, customer, other_customer):
        with pytest.raises(RewardmanError, match="CONFLICT"):
            CustomerService.update(customer.uuid, email="anna.kovacs@email.hu")

    def test_update_own_email_unchanged(self, customer):
        updated = CustomerService.update(customer.uuid, email="Peter.Nagy@email.hu")
        assert updated.email == "peter.nagy@email.hu"

    def test_update_invalid_role(self, customer):
        with pytest.raises(RewardmanError, match="VALIDATION_ERROR"):
            CustomerService.update(customer.uuid, role="SUPERUSER")

    def test_update_negative_points(self, customer):
        with pytest.raises(RewardmanError, match="VALIDATION_ERROR"):
            CustomerService.update(customer.uuid, points=-5)

    def test_update_immutable_field(self, customer):
        with pytest.raises(RewardmanError, match="VALIDATION_ERROR"):
            CustomerService.update(customer.uuid, loyalty_id="CUST999")

    def test_delete(self, customer):
        PurchaseService.record(customer.uuid, 2500)
        CustomerService.delete(customer.uuid)
        assert not Customer.objects.exists()
        assert not Purchase.objects.exists()

    def test_delete_unknown(self, db):
        with pytest.raises(RewardmanError, match="CUSTOMER_NOT_FOUND"):
            CustomerService.delete("00000000-0000-0000-0000-000000000000")


# ═══════════════════════════════════════════════════════════════════
# PurchaseService
# ═══════════════════════════════════════════════════════════════════


class TestPurchaseService:
    def test_record_normal(self, customer):
        """NORMAL, 2500 -> 27 points, one visit, spent 2500."""
        result = PurchaseService.record(customer.uuid, 2500, "RCP-001")

        assert result.purchase.points_earned == 27
        assert result.purchase.receipt_number == "RCP-001"
        assert result.promoted is False

        customer.refresh_from_db()
        assert customer.points == 27
        assert customer.total_spent == 2500
        assert customer.visit_count == 1
        assert customer.role == CustomerRole.NORMAL

    @pytest.mark.parametrize(
        "role,expected",
        [(CustomerRole.LOYAL, 35), (CustomerRole.OWNER, 42)],
    )
    def test_record_by_role(self, customer, role, expected):
        _set(customer, role=role)
        result = PurchaseService.record(customer.uuid, 2500)
        assert result.purchase.points_earned == expected

    def test_accumulates(self, customer):
        PurchaseService.record(customer.uuid, 2500)
        PurchaseService.record(customer.uuid, 1000)

        customer.refresh_from_db()
        assert customer.points == 27 + 11
        assert customer.total_spent == 3500
        assert customer.visit_count == 2

    def test_small_purchase_counts_visit(self, customer):
        result = PurchaseService.record(customer.uuid, 99)
        assert result.purchase.points_earned == 0
        assert result.customer.visit_count == 1

    def test_promotion_at_twentieth_visit(self, customer):
        """19 visits + this purchase = 20 -> LOYAL in the same update."""
        _set(customer, visit_count=19)

        result = PurchaseService.record(customer.uuid, 2500)

        assert result.promoted is True
        assert result.previous_role == CustomerRole.NORMAL
        customer.refresh_from_db()
        assert customer.visit_count == 20
        assert customer.role == CustomerRole.LOYAL
        # Points for this purchase use the role before promotion
        assert result.purchase.points_earned == 27

    def test_no_promotion_before_twenty(self, customer):
        _set(customer, visit_count=18)
        result = PurchaseService.record(customer.uuid, 2500)
        assert result.customer.role == CustomerRole.NORMAL

    def test_promotion_to_owner_at_fifty(self, customer):
        _set(customer, visit_count=49, role=CustomerRole.LOYAL)
        result = PurchaseService.record(customer.uuid, 2500)
        assert result.customer.role == CustomerRole.OWNER

    def test_admin_not_promoted(self, admin):
        _set(admin, visit_count=60)
        result = PurchaseService.record(admin.uuid, 2500)
        assert result.customer.role == CustomerRole.ADMIN
        assert result.purchase.points_earned == 25

    def test_admin_set_role_not_downgraded(self, customer):
        _set(customer, visit_count=25, role=CustomerRole.OWNER)
        result = PurchaseService.record(customer.uuid, 2500)
        assert result.customer.role == CustomerRole.OWNER

    def test_receipt_generated(self, customer):
        result = PurchaseService.record(customer.uuid, 2500)
        assert result.purchase.receipt_number.startswith("RCP-")

    @pytest.mark.parametrize("amount", [0, -100, True, 12.5])
    def test_invalid_amount(self, customer, amount):
        with pytest.raises(RewardmanError, match="VALIDATION_ERROR"):
            PurchaseService.record(customer.uuid, amount)
        assert not Purchase.objects.exists()

    def test_unknown_customer(self, db):
        with pytest.raises(RewardmanError, match="CUSTOMER_NOT_FOUND"):
            PurchaseService.record("00000000-0000-0000-0000-000000000000", 2500)
        assert not Purchase.objects.exists()

    def test_builds_on_locked_row(self, customer, monkeypatch):
        """A purchase committed while waiting for the lock is not lost."""
        _set(customer, points=27, total_spent=2500, visit_count=1)
        stale = Customer.objects.get(pk=customer.pk)
        locked_read = CustomerService.get_for_update.__func__

        def competing_purchase_then_lock(cls, customer_id):
            Customer.objects.filter(pk=customer.pk).update(
                points=54, total_spent=5000, visit_count=2
            )
            return locked_read(cls, customer_id)

        monkeypatch.setattr(
            CustomerService, "get_for_update", classmethod(competing_purchase_then_lock)
        )

        result = PurchaseService.record(stale.uuid, 2500)

        assert result.customer.points == 81
        assert result.customer.visit_count == 3
        customer.refresh_from_db()
        assert customer.points == 81
        assert customer.total_spent == 7500
        assert customer.visit_count == 3

    def test_failure_leaves_no_partial_state(self, customer, monkeypatch):
        """An error after the insert rolls back the purchase row too."""

        def boom(*args, **kwargs):
            raise RuntimeError("storage failure")

        monkeypatch.setattr(Customer, "save", boom)
        with pytest.raises(RuntimeError):
            PurchaseService.record(customer.uuid, 2500)

        monkeypatch.undo()
        customer.refresh_from_db()
        assert not Purchase.objects.exists()
        assert customer.points == 0
        assert customer.visit_count == 0

    def test_list_for_customer(self, customer, other_customer):
        PurchaseService.record(customer.uuid, 1000, "RCP-A")
        PurchaseService.record(customer.uuid, 2000, "RCP-B")
        PurchaseService.record(other_customer.uuid, 3000, "RCP-C")

        purchases = PurchaseService.list_for_customer(customer.uuid)
        assert [p.receipt_number for p in purchases] == ["RCP-B", "RCP-A"]

    def test_signal(self, customer, django_capture_on_commit_callbacks):
        received = []

        def handler(sender, purchase, promoted, **kwargs):
            received.append((purchase.amount, promoted))

        purchase_recorded.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                PurchaseService.record(customer.uuid, 2500)
        finally:
            purchase_recorded.disconnect(handler)

        assert received == [(2500, False)]


# ═══════════════════════════════════════════════════════════════════
# CouponService
# ═══════════════════════════════════════════════════════════════════


class TestCouponServiceCreate:
    def test_create_deducts_points(self, customer):
        """150 points -> coupon worth 1000, 50 points left."""
        _set(customer, points=150)

        coupon = CouponService.create(customer.uuid)

        assert coupon.value == 1000
        assert coupon.redeemed is False
        assert coupon.customer == customer
        customer.refresh_from_db()
        assert customer.points == 50

    def test_code_format(self, customer):
        _set(customer, points=300)
        year = timezone.localdate().year

        first = CouponService.create(customer.uuid)
        second = CouponService.create(customer.uuid)

        assert first.code == f"COUP-{year}-001"
        assert second.code == f"COUP-{year}-002"

    def test_code_continues_after_existing(self, customer):
        Coupon.objects.create(code="COUP-2024-099", customer=customer)
        _set(customer, points=100)

        coupon = CouponService.create(customer.uuid)
        assert coupon.code.endswith("-100")

    def test_exactly_enough_points(self, customer):
        """100 points allows exactly one coupon, leaving 0."""
        _set(customer, points=100)

        CouponService.create(customer.uuid)
        with pytest.raises(RewardmanError, match="INSUFFICIENT_POINTS"):
            CouponService.create(customer.uuid)

        customer.refresh_from_db()
        assert customer.points == 0
        assert Coupon.objects.count() == 1

    def test_balance_from_stale_read_not_trusted(self, customer):
        """A caller holding an old snapshot cannot spend the same 100 points twice."""
        _set(customer, points=100)
        stale = Customer.objects.get(pk=customer.pk)

        CouponService.create(customer.uuid)
        with pytest.raises(RewardmanError, match="INSUFFICIENT_POINTS"):
            CouponService.create(stale.uuid)

        assert stale.points == 100
        customer.refresh_from_db()
        assert customer.points == 0
        assert Coupon.objects.count() == 1

    def test_balance_checked_on_locked_row(self, customer, monkeypatch):
        """Points spent while waiting for the row lock are seen by the check."""
        _set(customer, points=100)
        connection = transaction.get_connection()
        outer_depth = len(connection.atomic_blocks)
        lock_depths = []
        locked_read = CustomerService.get_for_update.__func__

        def competing_spend_then_lock(cls, customer_id):
            lock_depths.append(len(connection.atomic_blocks))
            # Another request commits its coupon first
            Customer.objects.filter(pk=customer.pk).update(points=0)
            return locked_read(cls, customer_id)

        monkeypatch.setattr(
            CustomerService, "get_for_update", classmethod(competing_spend_then_lock)
        )

        with pytest.raises(RewardmanError) as exc_info:
            CouponService.create(customer.uuid)

        assert exc_info.value.code == "INSUFFICIENT_POINTS"
        assert exc_info.value.data == {"available": 0, "required": 100}
        assert lock_depths and lock_depths[0] > outer_depth
        customer.refresh_from_db()
        assert customer.points == 0
        assert not Coupon.objects.exists()

    def test_insufficient_points_no_side_effects(self, customer):
        _set(customer, points=99)

        with pytest.raises(RewardmanError) as exc_info:
            CouponService.create(customer.uuid)

        assert exc_info.value.code == "INSUFFICIENT_POINTS"
        assert exc_info.value.data == {"available": 99, "required": 100}
        customer.refresh_from_db()
        assert customer.points == 99
        assert not Coupon.objects.exists()

    def test_rejected_request_does_not_consume_code(self, customer):
        with pytest.raises(RewardmanError):
            CouponService.create(customer.uuid)
        _set(customer, points=100)

        coupon = CouponService.create(customer.uuid)
        assert coupon.code.endswith("-001")

    def test_cost_configurable(self, customer, settings):
        settings.REWARDMAN = {"COUPON_COST": 50, "COUPON_VALUE": 500}
        _set(customer, points=60)

        coupon = CouponService.create(customer.uuid)

        assert coupon.value == 500
        customer.refresh_from_db()
        assert customer.points == 10

    def test_unknown_customer(self, db):
        with pytest.raises(RewardmanError, match="CUSTOMER_NOT_FOUND"):
            CouponService.create("00000000-0000-0000-0000-000000000000")

    def test_signal(self, customer, django_capture_on_commit_callbacks):
        _set(customer, points=100)
        received = []

        def handler(sender, coupon, **kwargs):
            received.append(coupon.code)

        coupon_created.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                coupon = CouponService.create(customer.uuid)
        finally:
            coupon_created.disconnect(handler)

        assert received == [coupon.code]


class TestCouponServiceRedeem:
    @pytest.fixture
    def coupon(self, customer):
        _set(customer, points=150)
        return CouponService.create(customer.uuid)

    def test_redeem(self, coupon):
        redeemed = CouponService.redeem(coupon.code)

        assert redeemed.redeemed is True
        assert redeemed.redeemed_at is not None

    def test_redeem_twice(self, coupon, customer):
        """Second redemption fails and changes nothing."""
        first = CouponService.redeem(coupon.code)

        with pytest.raises(RewardmanError, match="ALREADY_REDEEMED"):
            CouponService.redeem(coupon.code)

        coupon.refresh_from_db()
        assert coupon.redeemed is True
        assert coupon.redeemed_at == first.redeemed_at
        customer.refresh_from_db()
        assert customer.points == 50

    def test_redeem_does_not_touch_points(self, coupon, customer):
        CouponService.redeem(coupon.code)
        customer.refresh_from_db()
        assert customer.points == 50

    def test_redeem_unknown(self, db):
        with pytest.raises(RewardmanError, match="COUPON_NOT_FOUND"):
            CouponService.redeem("COUP-1999-001")

    def test_concurrent_winner_observed(self, coupon):
        """A redemption committed by someone else makes ours fail."""
        Coupon.objects.filter(pk=coupon.pk).update(redeemed=True, redeemed_at=timezone.now())

        with pytest.raises(RewardmanError, match="ALREADY_REDEEMED"):
            CouponService.redeem(coupon.code)

    def test_lookup(self, coupon, customer):
        found = CouponService.lookup(coupon.code)
        assert found == coupon
        assert found.customer.loyalty_id == customer.loyalty_id

    def test_lookup_redeemed_is_readonly(self, coupon):
        CouponService.redeem(coupon.code)
        found = CouponService.lookup(coupon.code)
        assert found.redeemed is True

    def test_lookup_unknown(self, db):
        with pytest.raises(RewardmanError, match="COUPON_NOT_FOUND"):
            CouponService.lookup("NOPE")

    def test_list_for_customer(self, coupon, customer, other_customer):
        Coupon.objects.create(code="COUP-2024-900", customer=other_customer)
        assert CouponService.list_for_customer(customer.uuid) == [coupon]

    def test_signal(self, coupon, django_capture_on_commit_callbacks):
        received = []

        def handler(sender, coupon, **kwargs):
            received.append(coupon.code)

        coupon_redeemed.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                CouponService.redeem(coupon.code)
        finally:
            coupon_redeemed.disconnect(handler)

        assert received == [coupon.code]


# ═══════════════════════════════════════════════════════════════════
# Invariants over a mixed sequence
# ═══════════════════════════════════════════════════════════════════


class TestLedgerInvariants:
    def test_points_never_negative(self, customer):
        for amount in (2500, 5000, 9000, 1200):
            PurchaseService.record(customer.uuid, amount)
            while True:
                try:
                    CouponService.create(customer.uuid)
                except RewardmanError as exc:
                    assert exc.code == "INSUFFICIENT_POINTS"
                    break
            customer.refresh_from_db()
            assert 0 <= customer.points < 100

    def test_role_only_moves_forward(self, customer):
        order = [CustomerRole.NORMAL, CustomerRole.LOYAL, CustomerRole.OWNER]
        previous = 0
        for _ in range(55):
            role = PurchaseService.record(customer.uuid, 100).customer.role
            assert order.index(role) >= previous
            previous = order.index(role)
        assert previous == 2
