"""Rewardman admin.

Purchases and coupons are ledger records: read-only here, created only
through the services.
"""

from django.contrib import admin
from django.utils.html import format_html

from rewardman.models import Coupon, Customer, IdentifierSequence, Purchase


# ===========================================
# Inline Classes (must be defined before CustomerAdmin)
# ===========================================


class PurchaseInline(admin.TabularInline):
    model = Purchase
    extra = 0
    fields = ["receipt_number", "amount", "points_earned", "timestamp"]
    readonly_fields = ["receipt_number", "amount", "points_earned", "timestamp"]
    ordering = ["-timestamp"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class CouponInline(admin.TabularInline):
    model = Coupon
    extra = 0
    fields = ["code", "value", "redeemed", "created_at", "redeemed_at"]
    readonly_fields = ["code", "value", "redeemed", "created_at", "redeemed_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ===========================================
# Customer Admin
# ===========================================


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = [
        "loyalty_id",
        "name",
        "email",
        "role_badge",
        "points",
        "visit_count",
        "total_spent",
    ]
    list_filter = ["role"]
    search_fields = ["loyalty_id", "name", "email", "phone"]
    readonly_fields = [
        "uuid",
        "loyalty_id",
        "pin_hash",
        "points",
        "total_spent",
        "visit_count",
        "created_at",
        "updated_at",
    ]
    inlines = [PurchaseInline, CouponInline]

    fieldsets = [
        ("Identification", {"fields": ["loyalty_id", "uuid", "name"]}),
        ("Contact", {"fields": ["email", "phone"]}),
        ("Loyalty", {"fields": ["role", "points", "total_spent", "visit_count"]}),
        (
            "System",
            {
                "fields": ["pin_hash", "created_at", "updated_at"],
                "classes": ["collapse"],
            },
        ),
    ]

    def role_badge(self, obj):
        colors = {
            "NORMAL": "#6c757d",
            "LOYAL": "#c0c0c0",
            "OWNER": "#ffd700",
            "ADMIN": "#dc3545",
        }
        color = colors.get(obj.role, "#6c757d")
        text_color = "#000" if obj.role in ("LOYAL", "OWNER") else "#fff"
        return format_html(
            '<span style="background:{}; color:{}; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            color,
            text_color,
            obj.get_role_display(),
        )

    role_badge.short_description = "Role"

    def has_add_permission(self, request):
        # Loyalty IDs and PINs are issued by CustomerService.create()
        return False


# ===========================================
# Purchase Admin
# ===========================================


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    list_display = ["timestamp", "customer_link", "receipt_number", "amount", "points_display"]
    search_fields = ["receipt_number", "customer__loyalty_id", "customer__name"]
    readonly_fields = ["uuid", "customer", "amount", "points_earned", "receipt_number", "timestamp"]
    date_hierarchy = "timestamp"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def customer_link(self, obj):
        from django.urls import reverse

        url = reverse("admin:rewardman_customer_change", args=[obj.customer.pk])
        return format_html('<a href="{}">{}</a>', url, obj.customer.loyalty_id)

    customer_link.short_description = "Customer"

    def points_display(self, obj):
        return format_html('<span style="color:green">+{}</span>', obj.points_earned)

    points_display.short_description = "Points"


# ===========================================
# Coupon Admin
# ===========================================


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ["code", "customer_link", "value", "status_badge", "created_at", "redeemed_at"]
    list_filter = ["redeemed"]
    search_fields = ["code", "customer__loyalty_id", "customer__name"]
    readonly_fields = ["uuid", "code", "customer", "value", "redeemed", "created_at", "redeemed_at"]
    date_hierarchy = "created_at"

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def customer_link(self, obj):
        from django.urls import reverse

        url = reverse("admin:rewardman_customer_change", args=[obj.customer.pk])
        return format_html('<a href="{}">{}</a>', url, obj.customer.loyalty_id)

    customer_link.short_description = "Customer"

    def status_badge(self, obj):
        if obj.redeemed:
            return format_html('<span style="color: gray;">{}</span>', "redeemed")
        return format_html('<span style="color: green;">{}</span>', "active")

    status_badge.short_description = "Status"


@admin.register(IdentifierSequence)
class IdentifierSequenceAdmin(admin.ModelAdmin):
    list_display = ["namespace", "last_value", "updated_at"]
    readonly_fields = ["updated_at"]
