"""Identity protocols - what the credential service hands to the core."""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Identity:
    """Verified actor. ``id`` is the customer's public UUID as a string."""

    id: str
    loyalty_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


@dataclass(frozen=True)
class TokenPair:
    """Access + refresh token pair."""

    access_token: str
    refresh_token: str


@runtime_checkable
class CredentialBackend(Protocol):
    """Protocol for credential issuance/verification."""

    def issue(self, identity: Identity) -> TokenPair:
        """Issue a fresh token pair for a verified identity."""
        ...

    def verify_access(self, token: str) -> Identity:
        """Return the identity carried by an access token or raise."""
        ...

    def verify_refresh(self, token: str) -> Identity:
        """Return the identity carried by a refresh token or raise."""
        ...
