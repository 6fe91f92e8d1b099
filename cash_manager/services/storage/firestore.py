"""
Firestore Document Store

The production backend: Cloud Firestore accessed with the Firebase Admin SDK
using a service account. Collections and documents map one-to-one onto the
interface, so this module is a thin translation layer.

TRADEOFFS:
- The Admin SDK bypasses security rules, so user isolation is enforced by
  the ledger service always querying on userId.
- Firestore deletes are silently idempotent; we read before deleting so a
  second delete reports NotFoundError like the other backends.
"""

from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from tenacity import retry, stop_after_attempt, wait_exponential

from cash_manager.config import FirebaseSettings, get_settings
from cash_manager.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
    StoredDocument,
)


FIREBASE_APP_NAME = "cash-manager"


class FirestoreClient:
    """
    Low-level Firestore client wrapper.

    Handles authentication and provides retry logic for the initial connection.
    """

    def __init__(self, settings: Optional[FirebaseSettings] = None):
        self._settings = settings or get_settings().firebase
        self._app: Optional[firebase_admin.App] = None
        self._db = None

    def _credentials(self):
        if self._settings.credentials_path:
            return credentials.Certificate(self._settings.credentials_path)
        return credentials.ApplicationDefault()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self):
        """
        Initialise the Firebase app (once per process) and open Firestore.

        Uses a named app so an embedding program's default app is left alone.
        """
        if self._db is None:
            try:
                try:
                    self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
                except ValueError:
                    options = {}
                    if self._settings.project_id:
                        options["projectId"] = self._settings.project_id
                    self._app = firebase_admin.initialize_app(
                        self._credentials(),
                        options,
                        name=FIREBASE_APP_NAME,
                    )
                self._db = firestore.client(self._app)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Firebase credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Firestore: {e}")

        return self._db


class FirestoreDocumentStore(DocumentStoreInterface):
    """Firestore implementation of the document store."""

    def __init__(self, client: Optional[FirestoreClient] = None):
        self._client = client or FirestoreClient()

    def _collection(self, collection: str):
        return self._client.connect().collection(collection)

    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[dict[str, Any]]:
        """Fetch one document's fields."""
        try:
            snapshot = self._collection(collection).document(document_id).get()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {collection}/{document_id}: {e}")

        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    async def set_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        """Create or overwrite a document."""
        try:
            self._collection(collection).document(document_id).set(fields)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to set {collection}/{document_id}: {e}")

    async def add_document(
        self,
        collection: str,
        fields: dict[str, Any],
    ) -> str:
        """Create a document with a Firestore auto-ID."""
        try:
            _, reference = self._collection(collection).add(fields)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add document to {collection}: {e}")
        return reference.id

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[StoredDocument]:
        """Equality query on a single field."""
        try:
            snapshots = (
                self._collection(collection)
                .where(filter=FieldFilter(field, "==", value))
                .stream()
            )
            return [
                StoredDocument(id=snapshot.id, fields=snapshot.to_dict() or {})
                for snapshot in snapshots
            ]
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to query {collection} where {field} == {value!r}: {e}")

    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> None:
        """Delete a document, reporting a missing one as NotFoundError."""
        try:
            reference = self._collection(collection).document(document_id)
            if not reference.get().exists:
                raise NotFoundError(f"Document not found: {collection}/{document_id}")
            reference.delete()
        except (ConnectionError, NotFoundError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {collection}/{document_id}: {e}")
