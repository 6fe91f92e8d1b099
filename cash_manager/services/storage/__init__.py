"""
Storage Services Package

Provides the abstract document store interface and its implementations:
Firestore (production), Google Sheets (spreadsheet-backed), and in-memory
(tests and local development).
"""

from cash_manager.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    StorageError,
    StoredDocument,
)
from cash_manager.services.storage.memory import InMemoryDocumentStore
from cash_manager.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)
from cash_manager.services.storage.firestore import (
    FirestoreClient,
    FirestoreDocumentStore,
)

__all__ = [
    # Interface
    "DocumentStoreInterface",
    "StoredDocument",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "FirestoreClient",
    "FirestoreDocumentStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
]
