"""
Rewardman URLconf.

Mount under an API prefix in the project:
    path("api/", include("rewardman.urls")),
"""

from django.urls import path

from rewardman import views

app_name = "rewardman"

urlpatterns = [
    path("health/", views.HealthView.as_view(), name="health"),
    # Auth
    path("auth/login/", views.LoginView.as_view(), name="login"),
    path("auth/refresh/", views.RefreshView.as_view(), name="refresh"),
    path("auth/me/", views.MeView.as_view(), name="me"),
    # Customers
    path("customers/", views.CustomerListView.as_view(), name="customer-list"),
    path(
        "customers/<str:customer_id>/",
        views.CustomerDetailView.as_view(),
        name="customer-detail",
    ),
    # Purchases
    path("purchases/", views.PurchaseCreateView.as_view(), name="purchase-create"),
    path(
        "purchases/<str:customer_id>/",
        views.PurchaseListView.as_view(),
        name="purchase-list",
    ),
    # Coupons (lookup before the <customer_id> catch-all)
    path("coupons/", views.CouponCreateView.as_view(), name="coupon-create"),
    path("coupons/lookup/", views.CouponLookupView.as_view(), name="coupon-lookup"),
    path(
        "coupons/<str:code>/redeem/",
        views.CouponRedeemView.as_view(),
        name="coupon-redeem",
    ),
    path(
        "coupons/<str:customer_id>/",
        views.CouponListView.as_view(),
        name="coupon-list",
    ),
]
