"""
Request validation for the JSON API.

Each form validates one request body. ``validate()`` turns form errors into
RewardmanError("VALIDATION_ERROR") with per-field details, before any
service runs.
"""

from django import forms

from rewardman.exceptions import RewardmanError
from rewardman.models import CustomerRole

PIN_REGEX = r"^[0-9]{8}$"
PHONE_REGEX = r"^\+?[0-9]{10,15}$"


class LoginForm(forms.Form):
    loyaltyId = forms.CharField(min_length=1, error_messages={"required": "Loyalty ID is required"})
    pinCode = forms.RegexField(
        regex=PIN_REGEX,
        error_messages={"invalid": "PIN code must be 8 digits"},
    )


class RefreshForm(forms.Form):
    refreshToken = forms.CharField(error_messages={"required": "Refresh token is required"})


class CustomerCreateForm(forms.Form):
    name = forms.CharField(
        min_length=2,
        max_length=200,
        error_messages={"min_length": "Name must be at least 2 characters"},
    )
    email = forms.EmailField(error_messages={"invalid": "Invalid email address"})
    phone = forms.RegexField(
        regex=PHONE_REGEX,
        error_messages={"invalid": "Invalid phone number"},
    )
    pinCode = forms.RegexField(
        regex=PIN_REGEX,
        required=False,
        error_messages={"invalid": "PIN code must be 8 digits"},
    )


class CustomerUpdateForm(forms.Form):
    """All fields optional; only the keys present in the body are applied."""

    name = forms.CharField(min_length=2, max_length=200, required=False)
    email = forms.EmailField(required=False)
    phone = forms.RegexField(regex=PHONE_REGEX, required=False)
    points = forms.IntegerField(min_value=0, required=False)
    role = forms.ChoiceField(choices=CustomerRole.choices, required=False)

    def clean(self):
        cleaned_data = super().clean()
        # A key that is sent must carry a value
        for name in self.fields:
            if name not in self.data or name in self.errors:
                continue
            if cleaned_data.get(name) in (None, ""):
                self.add_error(name, "This field cannot be blank")
        return cleaned_data

    def supplied(self) -> dict:
        """Cleaned values for the fields actually sent in the request."""
        return {name: self.cleaned_data[name] for name in self.fields if name in self.data}


class PurchaseForm(forms.Form):
    customerId = forms.CharField(error_messages={"required": "Customer ID is required"})
    amount = forms.IntegerField(
        min_value=1,
        error_messages={"min_value": "Amount must be positive"},
    )
    receiptNumber = forms.CharField(max_length=100, required=False)


class CouponCreateForm(forms.Form):
    customerId = forms.CharField(error_messages={"required": "Customer ID is required"})


class CouponLookupForm(forms.Form):
    code = forms.CharField(error_messages={"required": "Coupon code is required"})


def validate(form_class: type[forms.Form], data: dict) -> forms.Form:
    """
    Bind and validate a form.

    Returns:
        The valid bound form (use .cleaned_data)

    Raises:
        RewardmanError: VALIDATION_ERROR with details=[{field, message}]
    """
    form = form_class(data=data)
    if not form.is_valid():
        details = [
            {"field": field, "message": str(message)}
            for field, messages in form.errors.items()
            for message in messages
        ]
        raise RewardmanError("VALIDATION_ERROR", details=details)
    return form
