"""Rewardman protocols."""

from rewardman.protocols.identity import (
    CredentialBackend,
    Identity,
    TokenPair,
)

__all__ = [
    "CredentialBackend",
    "Identity",
    "TokenPair",
]
