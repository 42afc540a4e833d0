"""Pytest fixtures for Rewardman tests."""

import pytest
from django.test import Client

from rewardman.models import Customer, CustomerRole
from rewardman.services.auth import AuthService, get_backend


def make_customer(loyalty_id, email, role=CustomerRole.NORMAL, pin="11111111", **fields):
    customer = Customer(
        loyalty_id=loyalty_id,
        name=fields.pop("name", f"Customer {loyalty_id}"),
        email=email,
        phone=fields.pop("phone", "+36301111111"),
        role=role,
        **fields,
    )
    customer.set_pin(pin)
    customer.save()
    return customer


@pytest.fixture
def customer(db):
    """NORMAL customer with no history."""
    return make_customer("CUST001", "peter.nagy@email.hu", name="Nagy Péter")


@pytest.fixture
def other_customer(db):
    """Second NORMAL customer."""
    return make_customer(
        "CUST002",
        "anna.kovacs@email.hu",
        name="Kovács Anna",
        phone="+36302222222",
        pin="22222222",
    )


@pytest.fixture
def admin(db):
    """Administrator account."""
    return make_customer(
        "ADMIN001",
        "admin@fastfood.hu",
        role=CustomerRole.ADMIN,
        name="Admin User",
        pin="12345678",
    )


@pytest.fixture
def identity_of():
    """Build the Identity the credential service would hand out."""
    return AuthService.identity_for


@pytest.fixture
def api_client_for():
    """Client factory sending a valid bearer token for the given customer."""

    def _client(customer):
        tokens = get_backend().issue(AuthService.identity_for(customer))
        return Client(HTTP_AUTHORIZATION=f"Bearer {tokens.access_token}")

    return _client


@pytest.fixture
def admin_api(admin, api_client_for):
    return api_client_for(admin)


@pytest.fixture
def customer_api(customer, api_client_for):
    return api_client_for(customer)
