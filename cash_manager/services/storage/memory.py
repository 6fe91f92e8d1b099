"""
In-Memory Document Store

Dict-backed implementation of the document store interface, used by the
test suite and for running the ledger locally without cloud credentials.
Nothing survives the process.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from cash_manager.services.storage.interface import (
    DocumentStoreInterface,
    DuplicateError,
    NotFoundError,
    StoredDocument,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Keeps documents in nested dicts: {collection: {document_id: fields}}.

    Fields are deep-copied on the way in and out so callers can't mutate
    stored state behind the store's back.
    """

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[dict[str, Any]]:
        fields = self._collection(collection).get(document_id)
        return copy.deepcopy(fields) if fields is not None else None

    async def set_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        self._collection(collection)[document_id] = copy.deepcopy(fields)

    async def add_document(
        self,
        collection: str,
        fields: dict[str, Any],
    ) -> str:
        documents = self._collection(collection)
        document_id = uuid4().hex
        if document_id in documents:
            raise DuplicateError(f"Document ID collision: {document_id}")
        documents[document_id] = copy.deepcopy(fields)
        return document_id

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[StoredDocument]:
        return [
            StoredDocument(id=document_id, fields=copy.deepcopy(fields))
            for document_id, fields in self._collection(collection).items()
            if field in fields and fields[field] == value
        ]

    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> None:
        documents = self._collection(collection)
        if document_id not in documents:
            raise NotFoundError(f"Document not found: {collection}/{document_id}")
        del documents[document_id]

    def count(self, collection: str) -> int:
        """Number of documents in a collection."""
        return len(self._collection(collection))
