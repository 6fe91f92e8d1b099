"""Services package."""

from cash_manager.services.identity import (
    AccountExistsError,
    FirebaseIdentityProvider,
    IdentityConnectionError,
    IdentityError,
    IdentityProviderInterface,
    InMemoryIdentityProvider,
    InvalidCredentialsError,
    WeakPasswordError,
)
from cash_manager.services.storage import (
    ConnectionError,
    DocumentStoreInterface,
    DuplicateError,
    FirestoreDocumentStore,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    StorageError,
    StoredDocument,
)

__all__ = [
    # Identity services
    "AccountExistsError",
    "FirebaseIdentityProvider",
    "IdentityConnectionError",
    "IdentityError",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "InvalidCredentialsError",
    "WeakPasswordError",
    # Storage services
    "ConnectionError",
    "DocumentStoreInterface",
    "DuplicateError",
    "FirestoreDocumentStore",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "NotFoundError",
    "StorageError",
    "StoredDocument",
]
