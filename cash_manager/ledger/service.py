"""
Ledger Service

Owns the two collections the application reads and writes:
- users/<uid>: the profile written at registration
- transactions: one document per income/expense entry, tagged with userId

Every method is a single round trip (or one query) to the document store.
There is no cross-document transaction and no retry; failures propagate as
StorageError subclasses for the caller to turn into a message.
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError as ModelValidationError

from cash_manager.config import AppSettings, get_settings
from cash_manager.ledger.calculations import compute_balance, sort_by_recency
from cash_manager.models.ledger import (
    AuthUser,
    LedgerSnapshot,
    Transaction,
    TransactionType,
    UserProfile,
)
from cash_manager.services.storage import DocumentStoreInterface
from cash_manager.validation import LedgerValidator


class LedgerService:
    """
    Transaction CRUD plus the derived views (sorted history, balance).

    Validation runs before any store call, so an invalid form never
    costs a network round trip.
    """

    def __init__(
        self,
        store: DocumentStoreInterface,
        validator: Optional[LedgerValidator] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().app
        self._validator = validator or LedgerValidator(self._settings)
        self._logger = structlog.get_logger(__name__)

    @property
    def users_collection(self) -> str:
        return self._settings.users_collection

    @property
    def transactions_collection(self) -> str:
        return self._settings.transactions_collection

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def create_profile(self, user: AuthUser, full_name: str) -> UserProfile:
        """Write users/<uid> for a freshly created account."""
        profile = UserProfile(id=user.uid, full_name=full_name, email=user.email)
        await self._store.set_document(
            self.users_collection,
            profile.id,
            profile.to_document(),
        )
        return profile

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """The user's profile, or None if no profile document exists."""
        fields = await self._store.get_document(self.users_collection, user_id)
        if fields is None:
            return None
        return UserProfile.from_document(user_id, fields)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        user_id: str,
        description: Any,
        amount: Any,
        transaction_type: Any = TransactionType.INCOME,
    ) -> Transaction:
        """
        Validate and persist a new transaction.

        Raises:
            ValidationError: If the form is invalid (no store call is made)
            StorageError: If the store rejects the write
        """
        transaction = self._validator.build_transaction(
            user_id=user_id,
            description=description,
            amount=amount,
            transaction_type=transaction_type,
        )
        document_id = await self._store.add_document(
            self.transactions_collection,
            transaction.to_document(),
        )
        return transaction.model_copy(update={"id": document_id})

    async def delete_transaction(self, transaction_id: str) -> None:
        """
        Remove a transaction.

        Raises:
            NotFoundError: If it doesn't exist (e.g. already deleted)
            StorageError: If the store rejects the delete
        """
        await self._store.delete_document(self.transactions_collection, transaction_id)

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """All of a user's transactions, newest first."""
        documents = await self._store.query(
            self.transactions_collection,
            "userId",
            user_id,
        )

        transactions = []
        for document in documents:
            try:
                transactions.append(Transaction.from_document(document.id, document.fields))
            except ModelValidationError as e:
                # Skip malformed documents rather than hide the whole ledger
                self._logger.warning(
                    "malformed_transaction_skipped",
                    transaction_id=document.id,
                    error=str(e),
                )
        return sort_by_recency(transactions)

    async def get_ledger(self, user_id: str) -> LedgerSnapshot:
        """Profile, sorted history and balance: everything the dashboard shows."""
        profile = await self.get_profile(user_id)
        transactions = await self.list_transactions(user_id)
        return LedgerSnapshot(
            user_id=user_id,
            profile=profile,
            transactions=transactions,
            balance=compute_balance(transactions),
            currency_symbol=self._settings.currency_symbol,
        )
