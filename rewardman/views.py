"""
Rewardman JSON API.

Every view:
    1. Authenticates the bearer token (unless public)
    2. Validates the body with a form (rewardman.forms)
    3. Applies the access gates (rewardman.gates)
    4. Calls the service and serializes the result

RewardmanError codes map to HTTP statuses in STATUS_BY_CODE; anything else
is logged and answered with 500.
"""

from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils import timezone
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from rewardman.exceptions import RewardmanError
from rewardman.forms import (
    CouponCreateForm,
    CouponLookupForm,
    CustomerCreateForm,
    CustomerUpdateForm,
    LoginForm,
    PurchaseForm,
    RefreshForm,
    validate,
)
from rewardman.gates import AccessGates
from rewardman.services import AuthService, CouponService, CustomerService, PurchaseService

logger = logging.getLogger("rewardman.api")

STATUS_BY_CODE = {
    "VALIDATION_ERROR": 400,
    "INSUFFICIENT_POINTS": 400,
    "ALREADY_REDEEMED": 400,
    "AUTHENTICATION_REQUIRED": 401,
    "INVALID_CREDENTIALS": 401,
    "INVALID_TOKEN": 401,
    "FORBIDDEN": 403,
    "CUSTOMER_NOT_FOUND": 404,
    "COUPON_NOT_FOUND": 404,
    "CONFLICT": 409,
}


# =============================================================================
# Serialization
# =============================================================================


def _isoformat(value):
    return value.isoformat() if value else None


def customer_payload(customer) -> dict:
    return {
        "id": str(customer.uuid),
        "loyaltyId": customer.loyalty_id,
        "name": customer.name,
        "email": customer.email,
        "phone": customer.phone,
        "points": customer.points,
        "totalSpent": customer.total_spent,
        "visitCount": customer.visit_count,
        "role": customer.role,
        "createdAt": _isoformat(customer.created_at),
    }


def purchase_payload(purchase) -> dict:
    return {
        "id": str(purchase.uuid),
        "customerId": str(purchase.customer.uuid),
        "amount": purchase.amount,
        "pointsEarned": purchase.points_earned,
        "receiptNumber": purchase.receipt_number,
        "timestamp": _isoformat(purchase.timestamp),
    }


def coupon_payload(coupon, with_customer: bool = False) -> dict:
    data = {
        "id": str(coupon.uuid),
        "code": coupon.code,
        "customerId": str(coupon.customer.uuid),
        "value": coupon.value,
        "createdAt": _isoformat(coupon.created_at),
        "redeemed": coupon.redeemed,
        "redeemedAt": _isoformat(coupon.redeemed_at),
    }
    if with_customer:
        # Owner projection for the admin verification screen
        data["customer"] = {
            "id": str(coupon.customer.uuid),
            "loyaltyId": coupon.customer.loyalty_id,
            "name": coupon.customer.name,
            "phone": coupon.customer.phone,
        }
    return data


def error_response(exc: RewardmanError) -> JsonResponse:
    body = {"error": exc.message, "code": exc.code}
    if "details" in exc.data:
        body["details"] = exc.data["details"]
    return JsonResponse(body, status=STATUS_BY_CODE.get(exc.code, 400))


# =============================================================================
# Base view
# =============================================================================


@method_decorator(csrf_exempt, name="dispatch")
class ApiView(View):
    """
    JSON endpoint base.

    Sets ``self.actor`` (Identity or None) before dispatching to the
    handler. Handlers raise RewardmanError; dispatch() renders it.
    """

    public = False

    def dispatch(self, request, *args, **kwargs):
        try:
            self.actor = None if self.public else self._authenticate(request)
            return super().dispatch(request, *args, **kwargs)
        except RewardmanError as exc:
            return error_response(exc)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return JsonResponse({"error": "Internal server error"}, status=500)

    def body(self) -> dict:
        """Parsed JSON object body."""
        try:
            data = json.loads(self.request.body or b"{}")
        except (json.JSONDecodeError, ValueError):
            raise RewardmanError("VALIDATION_ERROR", message="Invalid JSON")
        if not isinstance(data, dict):
            raise RewardmanError("VALIDATION_ERROR", message="JSON object expected")
        return data

    @staticmethod
    def _authenticate(request):
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise RewardmanError("AUTHENTICATION_REQUIRED")
        return AuthService.authenticate(token.strip())


# =============================================================================
# Health & auth
# =============================================================================


class HealthView(ApiView):
    public = True

    def get(self, request):
        return JsonResponse({"status": "ok", "timestamp": timezone.now().isoformat()})


class LoginView(ApiView):
    public = True

    def post(self, request):
        form = validate(LoginForm, self.body())
        result = AuthService.login(
            form.cleaned_data["loyaltyId"],
            form.cleaned_data["pinCode"],
        )
        user = customer_payload(result.customer)
        user.pop("totalSpent")
        user.pop("createdAt")
        return JsonResponse(
            {
                "accessToken": result.tokens.access_token,
                "refreshToken": result.tokens.refresh_token,
                "user": user,
            }
        )


class RefreshView(ApiView):
    public = True

    def post(self, request):
        form = validate(RefreshForm, self.body())
        tokens = AuthService.refresh(form.cleaned_data["refreshToken"])
        return JsonResponse(
            {"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token}
        )


class MeView(ApiView):
    def get(self, request):
        return JsonResponse(customer_payload(AuthService.me(self.actor)))


# =============================================================================
# Customers
# =============================================================================


class CustomerListView(ApiView):
    def get(self, request):
        AccessGates.admin_only(self.actor)
        customers = CustomerService.list_all()
        return JsonResponse([customer_payload(c) for c in customers], safe=False)

    def post(self, request):
        AccessGates.admin_only(self.actor)
        form = validate(CustomerCreateForm, self.body())
        customer, pin = CustomerService.create(
            name=form.cleaned_data["name"],
            email=form.cleaned_data["email"],
            phone=form.cleaned_data["phone"],
            pin=form.cleaned_data["pinCode"] or None,
        )
        # Plain PIN is returned on creation only
        return JsonResponse({**customer_payload(customer), "pinCode": pin}, status=201)


class CustomerDetailView(ApiView):
    def get(self, request, customer_id):
        AccessGates.self_or_admin(self.actor, customer_id)
        return JsonResponse(customer_payload(CustomerService.get(customer_id)))

    def put(self, request, customer_id):
        AccessGates.self_or_admin(self.actor, customer_id)
        form = validate(CustomerUpdateForm, self.body())
        fields = form.supplied()
        AccessGates.update_fields(self.actor, fields)
        customer = CustomerService.update(customer_id, **fields)
        return JsonResponse(customer_payload(customer))

    def delete(self, request, customer_id):
        AccessGates.admin_only(self.actor)
        CustomerService.delete(customer_id)
        return JsonResponse({"message": "Customer deleted successfully"})


# =============================================================================
# Purchases
# =============================================================================


class PurchaseCreateView(ApiView):
    def post(self, request):
        AccessGates.admin_only(self.actor)
        form = validate(PurchaseForm, self.body())
        result = PurchaseService.record(
            form.cleaned_data["customerId"],
            form.cleaned_data["amount"],
            form.cleaned_data["receiptNumber"] or None,
        )
        return JsonResponse(
            {
                "purchase": purchase_payload(result.purchase),
                "customer": {
                    "points": result.customer.points,
                    "visitCount": result.customer.visit_count,
                    "role": result.customer.role,
                },
            },
            status=201,
        )


class PurchaseListView(ApiView):
    def get(self, request, customer_id):
        AccessGates.self_or_admin(self.actor, customer_id)
        purchases = PurchaseService.list_for_customer(customer_id)
        return JsonResponse([purchase_payload(p) for p in purchases], safe=False)


# =============================================================================
# Coupons
# =============================================================================


class CouponCreateView(ApiView):
    def post(self, request):
        form = validate(CouponCreateForm, self.body())
        customer_id = form.cleaned_data["customerId"]
        AccessGates.self_only(self.actor, customer_id)
        coupon = CouponService.create(customer_id)
        return JsonResponse(coupon_payload(coupon), status=201)


class CouponListView(ApiView):
    def get(self, request, customer_id):
        AccessGates.self_or_admin(self.actor, customer_id)
        coupons = CouponService.list_for_customer(customer_id)
        return JsonResponse([coupon_payload(c) for c in coupons], safe=False)


class CouponLookupView(ApiView):
    def post(self, request):
        AccessGates.admin_only(self.actor)
        form = validate(CouponLookupForm, self.body())
        coupon = CouponService.lookup(form.cleaned_data["code"])
        return JsonResponse(coupon_payload(coupon, with_customer=True))


class CouponRedeemView(ApiView):
    def put(self, request, code):
        AccessGates.admin_only(self.actor)
        coupon = CouponService.redeem(code)
        return JsonResponse(coupon_payload(coupon))
