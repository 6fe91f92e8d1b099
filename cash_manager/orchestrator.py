"""
Main Orchestrator for Cash Manager

This module ties together all the components and defines the
end-to-end flows a front end drives:
1. Accounts (register → create account → write profile; sign in; sign out)
2. Dashboard (load profile + history + balance; add; delete; refresh)

DESIGN DECISION: The flows are the call site for every external call.
Services raise typed exceptions; the flows catch them, audit them, and
hand back (value, ok, message) so a UI only has to display the message.
Nothing is retried: a failed call is reported and the user tries again.
"""

from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError as ModelValidationError

from cash_manager.audit import AuditLogger, create_correlation_id
from cash_manager.config import Settings, get_settings
from cash_manager.ledger import LedgerService
from cash_manager.models.audit import AuditEventBuilder
from cash_manager.models.ledger import (
    AuthUser,
    LedgerSnapshot,
    TransactionType,
    UserProfile,
)
from cash_manager.services.identity import (
    FirebaseIdentityProvider,
    IdentityError,
    IdentityProviderInterface,
    InMemoryIdentityProvider,
)
from cash_manager.services.identity.interface import AuthStateListener
from cash_manager.services.storage import (
    DocumentStoreInterface,
    FirestoreDocumentStore,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    StorageError,
)
from cash_manager.validation import LedgerValidator, ValidationError


# User-facing messages
SIGN_IN_REQUIRED = "Please sign in to continue."
LOAD_FAILED = "Failed to load your data."
ADD_FAILED = "Failed to add transaction."
DELETE_FAILED = "Failed to delete."
PROFILE_SAVE_FAILED = "Your account was created, but saving your profile failed."


class AccountFlow:
    """
    Registration, sign-in and sign-out.

    Flow (register):
    1. Validate the form locally (no network on failure)
    2. Create the account with the identity provider
    3. Write the users/<uid> profile document
    """

    def __init__(
        self,
        identity: IdentityProviderInterface,
        ledger: LedgerService,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity = identity
        self._ledger = ledger
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._identity.current_user

    def on_auth_state_changed(self, listener: AuthStateListener) -> Callable[[], None]:
        """Subscribe to sign-in/sign-out; returns the unsubscribe function."""
        return self._identity.on_auth_state_changed(listener)

    async def register(
        self,
        full_name: str,
        email: str,
        password: str,
        confirm_password: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[UserProfile], bool, str]:
        """
        Create an account and its profile.

        Returns:
            (profile, ok, message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_registration(
            full_name, email, password, confirm_password
        )
        if result.has_errors:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    subject=result.subject,
                    issues=[
                        {"field": i.field, "type": i.issue_type}
                        for i in result.issues
                    ],
                    correlation_id=correlation_id,
                )
            return None, False, self._validator.get_user_friendly_summary(result)

        email = email.strip()
        try:
            user = await self._identity.create_account(email, password)
        except IdentityError as e:
            if self._audit_logger:
                await self._audit_logger.log(AuditEventBuilder.auth_failed(
                    action="registration",
                    email=email,
                    error_message=str(e),
                    correlation_id=correlation_id,
                ))
            return None, False, str(e)

        try:
            profile = await self._ledger.create_profile(user, full_name)
        except ModelValidationError as e:
            # The provider accepted input the profile schema rejects
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="ProfileValidationError",
                    error_message=str(e),
                    details={"user_id": user.uid, "operation": "create_profile"},
                    correlation_id=correlation_id,
                )
            return None, False, PROFILE_SAVE_FAILED
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="document_store",
                    operation="set_document",
                    error_message=str(e),
                    user_id=user.uid,
                    correlation_id=correlation_id,
                )
            return None, False, PROFILE_SAVE_FAILED

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.user_registered(
                user_id=user.uid,
                email=user.email,
                correlation_id=correlation_id,
            ))

        return profile, True, "Account created."

    async def sign_in(
        self,
        email: str,
        password: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[AuthUser], bool, str]:
        """
        Sign in with e-mail and password.

        Returns:
            (user, ok, message)
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_sign_in(email, password)
        if result.has_errors:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    subject=result.subject,
                    issues=[
                        {"field": i.field, "type": i.issue_type}
                        for i in result.issues
                    ],
                    correlation_id=correlation_id,
                )
            return None, False, self._validator.get_user_friendly_summary(result)

        email = str(email).strip()
        try:
            user = await self._identity.sign_in(email, password)
        except IdentityError as e:
            if self._audit_logger:
                await self._audit_logger.log(AuditEventBuilder.auth_failed(
                    action="sign-in",
                    email=email,
                    error_message=str(e),
                    correlation_id=correlation_id,
                ))
            return None, False, str(e)

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.user_signed_in(
                user_id=user.uid,
                email=user.email,
                correlation_id=correlation_id,
            ))

        return user, True, "Signed in."

    async def sign_out(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[None, bool, str]:
        """Sign out the current user."""
        user = self._identity.current_user
        await self._identity.sign_out()

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.user_signed_out(
                user_id=user.uid if user else None,
                correlation_id=correlation_id,
            ))

        return None, True, "Signed out."


class DashboardFlow:
    """
    The signed-in user's ledger.

    Every mutation is followed by a full re-fetch, so the returned
    snapshot always reflects what the store holds.
    """

    def __init__(
        self,
        identity: IdentityProviderInterface,
        ledger: LedgerService,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._identity = identity
        self._ledger = ledger
        self._audit_logger = audit_logger
        self._logger = structlog.get_logger(__name__)

    async def _report_store_failure(
        self,
        operation: str,
        error: Exception,
        user_id: Optional[str],
        correlation_id: Optional[UUID],
    ) -> None:
        self._logger.error(
            "ledger_operation_failed",
            operation=operation,
            error=str(error),
            user_id=user_id,
        )
        if self._audit_logger:
            await self._audit_logger.log_external_service_error(
                service="document_store",
                operation=operation,
                error_message=str(error),
                user_id=user_id,
                correlation_id=correlation_id,
            )

    async def load(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[LedgerSnapshot], bool, str]:
        """
        Fetch profile, history and balance for the current user.

        Returns:
            (snapshot, ok, message)
        """
        user = self._identity.current_user
        if user is None:
            return None, False, SIGN_IN_REQUIRED

        try:
            snapshot = await self._ledger.get_ledger(user.uid)
        except StorageError as e:
            await self._report_store_failure("load", e, user.uid, correlation_id)
            return None, False, LOAD_FAILED

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.ledger_loaded(
                user_id=user.uid,
                transaction_count=len(snapshot.transactions),
                balance=snapshot.formatted_balance,
                correlation_id=correlation_id,
            ))

        return snapshot, True, ""

    async def add_transaction(
        self,
        description: Any,
        amount: Any,
        transaction_type: Any = TransactionType.INCOME,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[LedgerSnapshot], bool, str]:
        """
        Validate, save, then re-fetch.

        Returns:
            (refreshed snapshot, ok, message)
        """
        correlation_id = correlation_id or create_correlation_id()
        user = self._identity.current_user
        if user is None:
            return None, False, SIGN_IN_REQUIRED

        try:
            transaction = await self._ledger.add_transaction(
                user_id=user.uid,
                description=description,
                amount=amount,
                transaction_type=transaction_type,
            )
            snapshot = await self._ledger.get_ledger(user.uid)
        except ValidationError as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    subject=e.result.subject,
                    issues=[
                        {"field": i.field, "type": i.issue_type}
                        for i in e.result.issues
                    ],
                    user_id=user.uid,
                    correlation_id=correlation_id,
                )
            return None, False, str(e)
        except StorageError as e:
            await self._report_store_failure("add_transaction", e, user.uid, correlation_id)
            return None, False, ADD_FAILED

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.transaction_added(
                transaction_id=transaction.id,
                user_id=user.uid,
                transaction_type=transaction.type.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            ))

        return snapshot, True, "Transaction added."

    async def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[LedgerSnapshot], bool, str]:
        """
        Delete, then re-fetch.

        Deleting an ID that is already gone reports a failure.

        Returns:
            (refreshed snapshot, ok, message)
        """
        correlation_id = correlation_id or create_correlation_id()
        user = self._identity.current_user
        if user is None:
            return None, False, SIGN_IN_REQUIRED

        try:
            await self._ledger.delete_transaction(transaction_id)
            snapshot = await self._ledger.get_ledger(user.uid)
        except StorageError as e:
            await self._report_store_failure("delete_transaction", e, user.uid, correlation_id)
            return None, False, DELETE_FAILED

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.transaction_deleted(
                transaction_id=transaction_id,
                user_id=user.uid,
                correlation_id=correlation_id,
            ))

        return snapshot, True, "Transaction deleted."


def create_identity_provider(settings: Settings) -> IdentityProviderInterface:
    """Identity provider selected by APP identity_backend."""
    backend = settings.app.identity_backend
    if backend == "memory":
        return InMemoryIdentityProvider()
    return FirebaseIdentityProvider(settings.firebase)


def create_document_store(settings: Settings) -> DocumentStoreInterface:
    """Document store selected by APP store_backend."""
    backend = settings.app.store_backend
    if backend == "memory":
        return InMemoryDocumentStore()
    if backend == "google_sheets":
        return GoogleSheetsDocumentStore()
    return FirestoreDocumentStore()


def create_app_components(
    settings: Optional[Settings] = None,
    identity: Optional[IdentityProviderInterface] = None,
    store: Optional[DocumentStoreInterface] = None,
) -> tuple[AccountFlow, DashboardFlow]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        identity: Identity provider override (e.g. for tests)
        store: Document store override (e.g. for tests)

    Returns:
        (account_flow, dashboard_flow)
    """
    settings = settings or get_settings()
    app_settings = settings.app

    identity = identity or create_identity_provider(settings)
    store = store or create_document_store(settings)

    audit_logger = AuditLogger(
        storage=store if app_settings.persist_audit_events else None,
        collection=app_settings.audit_collection,
    )
    validator = LedgerValidator(app_settings)
    ledger = LedgerService(store, validator=validator, settings=app_settings)

    account_flow = AccountFlow(
        identity=identity,
        ledger=ledger,
        validator=validator,
        audit_logger=audit_logger,
    )
    dashboard_flow = DashboardFlow(
        identity=identity,
        ledger=ledger,
        audit_logger=audit_logger,
    )

    return account_flow, dashboard_flow
