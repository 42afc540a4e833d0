"""
Auth service - PIN login and signed bearer tokens.

Tokens are django.core.signing payloads ({"id", "loyaltyId", "role"}) with
separate salts for access and refresh tokens, so one can never be used as
the other. The backend is pluggable through REWARDMAN["CREDENTIAL_BACKEND"].
"""

import logging
from dataclasses import dataclass

from django.core import signing
from django.utils.module_loading import import_string

from rewardman.conf import rewardman_settings
from rewardman.exceptions import RewardmanError
from rewardman.models import Customer
from rewardman.protocols import CredentialBackend, Identity, TokenPair
from rewardman.services.customer import CustomerService

logger = logging.getLogger(__name__)

ACCESS_SALT = "rewardman.auth.access"
REFRESH_SALT = "rewardman.auth.refresh"


class SignedTokenBackend:
    """CredentialBackend on top of django.core.signing (SECRET_KEY based)."""

    def issue(self, identity: Identity) -> TokenPair:
        return TokenPair(
            access_token=self._dumps(identity, ACCESS_SALT),
            refresh_token=self._dumps(identity, REFRESH_SALT),
        )

    def verify_access(self, token: str) -> Identity:
        return self._loads(token, ACCESS_SALT, rewardman_settings.ACCESS_TOKEN_TTL)

    def verify_refresh(self, token: str) -> Identity:
        return self._loads(token, REFRESH_SALT, rewardman_settings.REFRESH_TOKEN_TTL)

    @staticmethod
    def _dumps(identity: Identity, salt: str) -> str:
        payload = {"id": identity.id, "loyaltyId": identity.loyalty_id, "role": identity.role}
        return signing.dumps(payload, salt=salt, compress=True)

    @staticmethod
    def _loads(token: str, salt: str, max_age: int) -> Identity:
        try:
            payload = signing.loads(token, salt=salt, max_age=max_age)
        except signing.BadSignature as exc:
            # SignatureExpired is a BadSignature too
            raise RewardmanError("INVALID_TOKEN") from exc
        try:
            return Identity(
                id=payload["id"],
                loyalty_id=payload["loyaltyId"],
                role=payload["role"],
            )
        except (KeyError, TypeError) as exc:
            raise RewardmanError("INVALID_TOKEN") from exc


def get_backend() -> CredentialBackend:
    """Get configured CredentialBackend."""
    backend_class = import_string(rewardman_settings.CREDENTIAL_BACKEND)
    return backend_class()


@dataclass
class LoginResult:
    """Successful login: token pair plus the customer record."""

    tokens: TokenPair
    customer: Customer


class AuthService:
    """
    Service for authentication.

    Uses @classmethod for extensibility (consistent with the other services).
    """

    @classmethod
    def login(cls, loyalty_id: str, pin: str) -> LoginResult:
        """
        Verify loyalty ID + PIN and issue tokens.

        Unknown ID and wrong PIN fail identically.

        Raises:
            RewardmanError: INVALID_CREDENTIALS
        """
        customer = CustomerService.get_by_loyalty_id(loyalty_id)
        if customer is None or not customer.check_pin(pin):
            logger.warning("Login failed for %s", loyalty_id)
            raise RewardmanError("INVALID_CREDENTIALS")

        tokens = get_backend().issue(cls.identity_for(customer))
        logger.info("Customer %s logged in", customer.loyalty_id)
        return LoginResult(tokens=tokens, customer=customer)

    @classmethod
    def refresh(cls, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair.

        The identity is re-read from the database, so role changes and
        deletions take effect on refresh.

        Raises:
            RewardmanError: INVALID_TOKEN
        """
        backend = get_backend()
        identity = backend.verify_refresh(refresh_token)
        try:
            customer = CustomerService.get(identity.id)
        except RewardmanError as exc:
            raise RewardmanError("INVALID_TOKEN", message="Invalid refresh token") from exc
        return backend.issue(cls.identity_for(customer))

    @classmethod
    def authenticate(cls, access_token: str) -> Identity:
        """
        Resolve an access token to an Identity.

        Raises:
            RewardmanError: INVALID_TOKEN
        """
        return get_backend().verify_access(access_token)

    @classmethod
    def me(cls, identity: Identity) -> Customer:
        """Current customer record for an identity."""
        return CustomerService.get(identity.id)

    @staticmethod
    def identity_for(customer: Customer) -> Identity:
        return Identity(
            id=str(customer.uuid),
            loyalty_id=customer.loyalty_id,
            role=customer.role,
        )
