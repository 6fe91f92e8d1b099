"""Identity provider package."""

from cash_manager.services.identity.interface import (
    AccountExistsError,
    AuthStateListener,
    IdentityConnectionError,
    IdentityError,
    IdentityProviderInterface,
    InvalidCredentialsError,
    WeakPasswordError,
)
from cash_manager.services.identity.firebase_auth import FirebaseIdentityProvider
from cash_manager.services.identity.memory import InMemoryIdentityProvider

__all__ = [
    "AccountExistsError",
    "AuthStateListener",
    "FirebaseIdentityProvider",
    "IdentityConnectionError",
    "IdentityError",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "InvalidCredentialsError",
    "WeakPasswordError",
]
