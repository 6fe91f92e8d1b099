"""
Google Sheets Document Store

DESIGN DECISION: Google Sheets is kept as an alternative backend because:
1. Users can view their ledger directly in Sheets
2. No database setup required beyond a service account
3. Built-in backup (Google's infrastructure)

Each collection is a worksheet. Each document is a row holding its ID and
its fields serialized as JSON, so the schemaless document model survives
without per-collection column mappings.

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions, no indexes
- Equality queries are evaluated in Python over the whole worksheet
"""

import json
from typing import Any, Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from cash_manager.config import GoogleSheetsSettings, get_settings
from cash_manager.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
    StoredDocument,
)


# Column layout shared by every collection worksheet
DOCUMENT_COLUMNS = [
    "id",
    "fields_json",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for the initial connection.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        if collection not in self._worksheets:
            spreadsheet = self.get_spreadsheet()
            try:
                sheet = spreadsheet.worksheet(collection)
            except gspread.WorksheetNotFound:
                # Create the sheet with headers
                sheet = spreadsheet.add_worksheet(
                    title=collection,
                    rows=1000,
                    cols=len(DOCUMENT_COLUMNS),
                )
                sheet.append_row(DOCUMENT_COLUMNS)
            self._worksheets[collection] = sheet
        return self._worksheets[collection]


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Rows are [id, fields_json]; row 1 is the header.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _document_to_row(self, document_id: str, fields: dict[str, Any]) -> list:
        return [document_id, json.dumps(fields, sort_keys=True)]

    def _row_to_document(self, row: list) -> StoredDocument:
        fields_json = row[1] if len(row) > 1 and row[1] else "{}"
        return StoredDocument(id=row[0], fields=json.loads(fields_json))

    def _find_row(self, sheet: gspread.Worksheet, document_id: str) -> tuple[Optional[int], Optional[list]]:
        """Return (1-based row index, row) for a document ID, or (None, None)."""
        all_rows = sheet.get_all_values()
        for idx, row in enumerate(all_rows[1:], start=2):  # Start from 2 (row 1 is header)
            if row and row[0] == document_id:
                return idx, row
        return None, None

    async def get_document(
        self,
        collection: str,
        document_id: str,
    ) -> Optional[dict[str, Any]]:
        """Retrieve a document's fields by ID."""
        try:
            sheet = self._client.get_collection_sheet(collection)
            _, row = self._find_row(sheet, document_id)
            if row is None:
                return None
            return self._row_to_document(row).fields
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {collection}/{document_id}: {e}")

    async def set_document(
        self,
        collection: str,
        document_id: str,
        fields: dict[str, Any],
    ) -> None:
        """Overwrite the row for a document, appending one if it's new."""
        try:
            sheet = self._client.get_collection_sheet(collection)
            idx, _ = self._find_row(sheet, document_id)
            new_row = self._document_to_row(document_id, fields)
            if idx is None:
                sheet.append_row(new_row, value_input_option="RAW")
            else:
                for col_idx, value in enumerate(new_row, start=1):
                    sheet.update_cell(idx, col_idx, value)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to set {collection}/{document_id}: {e}")

    async def add_document(
        self,
        collection: str,
        fields: dict[str, Any],
    ) -> str:
        """Append a row under a freshly generated ID."""
        document_id = uuid4().hex
        try:
            sheet = self._client.get_collection_sheet(collection)
            sheet.append_row(
                self._document_to_row(document_id, fields),
                value_input_option="RAW",
            )
            return document_id
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to add document to {collection}: {e}")

    async def query(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[StoredDocument]:
        """Equality filter evaluated over every row."""
        try:
            sheet = self._client.get_collection_sheet(collection)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to query {collection}: {e}")

        documents = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                document = self._row_to_document(row)
            except ValueError:
                continue  # Skip rows someone hand-edited into invalid JSON
            if field in document.fields and document.fields[field] == value:
                documents.append(document)
        return documents

    async def delete_document(
        self,
        collection: str,
        document_id: str,
    ) -> None:
        """Delete the row holding a document."""
        try:
            sheet = self._client.get_collection_sheet(collection)
            idx, _ = self._find_row(sheet, document_id)
            if idx is None:
                raise NotFoundError(f"Document not found: {collection}/{document_id}")
            sheet.delete_rows(idx)
        except (ConnectionError, NotFoundError):
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {collection}/{document_id}: {e}")
