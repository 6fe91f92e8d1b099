"""
Abstract Document Store Interface

DESIGN DECISION: We define an abstract interface for the document store.
This allows us to:
1. Use Firestore in production
2. Keep Google Sheets as a zero-setup backend users can inspect directly
3. Use in-memory storage for testing and local development
4. Keep ledger logic decoupled from any particular SDK

The interface is intentionally small: schemaless documents addressed by
(collection, id), plus a single equality query. That is all the ledger needs.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field


class StoredDocument(BaseModel):
    """A document as returned by a query: its ID plus its fields."""

    id: str = Field(..., min_length=1)
    fields: dict[str, Any] = Field(default_factory=dict)


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document store operations.

    Any storage implementation (Firestore, Google Sheets, memory)
    must implement these methods.
    """

    @abstractmethod
    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[dict[str, Any]]:
        """
        Fetch one document.

        Args:
            collection: Collection name
            document_id: Document ID

        Returns:
            The document's fields, or None if it doesn't exist

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def set_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        """
        Create or overwrite a document under a caller-chosen ID.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def add_document(
        self,
        collection: str,
        fields: dict[str, Any],
    ) -> str:
        """
        Create a document with a store-assigned ID.

        Returns:
            The new document's ID

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[StoredDocument]:
        """
        Find every document whose `field` equals `value`.

        No ordering is guaranteed.

        Raises:
            StorageError: If the query fails
        """
        pass

    @abstractmethod
    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> None:
        """
        Delete a document.

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
