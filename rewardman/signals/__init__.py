"""
Rewardman signals - public event API.

Emitted signals (after the surrounding transaction commits):
- customer_created: CustomerService.create()
- customer_updated: CustomerService.update(), changes=dict
- purchase_recorded: PurchaseService.record(), purchase=Purchase, promoted=bool
- coupon_created: CouponService.create(), coupon=Coupon
- coupon_redeemed: CouponService.redeem(), coupon=Coupon
"""

from django.dispatch import Signal

# Customer signals
customer_created = Signal()  # sender=Customer
customer_updated = Signal()  # sender=Customer, changes=dict

# Ledger signals
purchase_recorded = Signal()  # sender=Customer, purchase=Purchase, promoted=bool
coupon_created = Signal()  # sender=Customer, coupon=Coupon
coupon_redeemed = Signal()  # sender=Coupon
