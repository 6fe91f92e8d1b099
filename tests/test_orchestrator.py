"""
Flow tests: accounts and dashboard over the in-memory backends.
"""

import asyncio
from decimal import Decimal

import pytest

from cash_manager.audit import AuditLogger
from cash_manager.config import AppSettings, Settings
from cash_manager.ledger import LedgerService
from cash_manager.models.ledger import ValidationResult
from cash_manager.orchestrator import (
    AccountFlow,
    ADD_FAILED,
    DELETE_FAILED,
    LOAD_FAILED,
    PROFILE_SAVE_FAILED,
    SIGN_IN_REQUIRED,
    create_app_components,
)
from cash_manager.services.identity import InMemoryIdentityProvider
from cash_manager.services.storage import InMemoryDocumentStore, StorageError
from cash_manager.validation import LedgerValidator


def run(coro):
    return asyncio.run(coro)


class FlakyDocumentStore(InMemoryDocumentStore):
    """In-memory store whose listed operations fail."""

    def __init__(self, failing=()):
        super().__init__()
        self.failing = set(failing)

    async def set_document(self, collection, document_id, fields):
        if "set" in self.failing:
            raise StorageError("unavailable")
        await super().set_document(collection, document_id, fields)

    async def add_document(self, collection, fields):
        if "add" in self.failing:
            raise StorageError("unavailable")
        return await super().add_document(collection, fields)

    async def query(self, collection, field, value):
        if "query" in self.failing:
            raise StorageError("unavailable")
        return await super().query(collection, field, value)


class RecordingIdentityProvider(InMemoryIdentityProvider):
    """In-memory provider that remembers every sign-in attempt."""

    def __init__(self):
        super().__init__()
        self.sign_in_calls = []

    async def sign_in(self, email, password):
        self.sign_in_calls.append((email, password))
        return await super().sign_in(email, password)


class AcceptAllValidator(LedgerValidator):
    """Validator that lets every registration form through."""

    def validate_registration(self, full_name, email, password, confirm_password):
        return ValidationResult(subject="registration")


@pytest.fixture
def identity():
    return InMemoryIdentityProvider()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def flows(identity, store):
    return create_app_components(identity=identity, store=store)


@pytest.fixture
def signed_in(flows):
    account, dashboard = flows
    run(account.register("Ada Lovelace", "ada@example.com", "secret1", "secret1"))
    return account, dashboard


class TestAccountFlow:
    """Tests for registration, sign-in and sign-out."""

    def test_register_creates_profile(self, flows, store):
        """Test registration signs in and writes users/<uid>."""
        account, _ = flows
        profile, ok, message = run(
            account.register("Ada Lovelace", "ada@example.com", "secret1", "secret1")
        )
        assert ok is True
        assert message == "Account created."
        assert account.current_user.uid == profile.id

        fields = run(store.get_document("users", profile.id))
        assert fields["fullName"] == "Ada Lovelace"

    def test_register_validation_blocks_provider(self, flows, identity):
        """Test a bad form never reaches the identity provider."""
        account, _ = flows
        _, ok, message = run(account.register("Ada", "ada@example.com", "secret1", "secret2"))
        assert ok is False
        assert message == "Passwords do not match"
        assert identity._accounts == {}

    def test_register_missing_fields(self, flows):
        """Test empty fields give the fill-in prompt."""
        account, _ = flows
        _, ok, message = run(account.register("", "ada@example.com", "", ""))
        assert ok is False
        assert message == "Please fill in all fields."

    def test_register_duplicate_email(self, signed_in):
        """Test the provider's message is passed through."""
        account, _ = signed_in
        run(account.sign_out())
        _, ok, message = run(
            account.register("Ada Again", "ada@example.com", "secret1", "secret1")
        )
        assert ok is False
        assert message == "An account with this email already exists."

    def test_register_weak_password(self, flows):
        """Test the provider's password rule surfaces to the user."""
        account, _ = flows
        _, ok, message = run(account.register("Ada", "ada@example.com", "123", "123"))
        assert ok is False
        assert message == "Password should be at least 6 characters."

    def test_profile_write_failure(self, identity):
        """Test a failed profile write is reported, not raised."""
        account, _ = create_app_components(
            identity=identity, store=FlakyDocumentStore(failing={"set"})
        )
        profile, ok, message = run(
            account.register("Ada", "ada@example.com", "secret1", "secret1")
        )
        assert profile is None
        assert ok is False
        assert message == PROFILE_SAVE_FAILED

    def test_register_long_name_blocked_before_provider(self, flows, identity):
        """Test a name the profile can't hold never creates an account."""
        account, _ = flows
        profile, ok, message = run(
            account.register("A" * 201, "ada@example.com", "secret1", "secret1")
        )
        assert profile is None
        assert ok is False
        assert message == "Full name must be at most 200 characters."
        assert identity._accounts == {}
        assert account.current_user is None

    def test_profile_rejected_by_model_is_reported(self, identity, store):
        """Test a profile the model rejects becomes a message and a system error event."""
        ledger = LedgerService(store, settings=AppSettings())
        account = AccountFlow(
            identity=identity,
            ledger=ledger,
            validator=AcceptAllValidator(AppSettings()),
            audit_logger=AuditLogger(storage=store),
        )

        profile, ok, message = run(
            account.register("A" * 201, "ada@example.com", "secret1", "secret1")
        )

        assert (profile, ok, message) == (None, False, PROFILE_SAVE_FAILED)
        assert run(store.get_document("users", account.current_user.uid)) is None
        events = run(store.query("audit_events", "event_type", "system_error"))
        assert len(events) == 1
        assert events[0].fields["details"]["operation"] == "create_profile"

    def test_sign_in_and_out(self, signed_in):
        """Test sign-out then sign-in with the same credentials."""
        account, _ = signed_in
        uid = account.current_user.uid

        assert run(account.sign_out()) == (None, True, "Signed out.")
        assert account.current_user is None

        user, ok, message = run(account.sign_in(" ada@example.com ", "secret1"))
        assert ok is True
        assert message == "Signed in."
        assert user.uid == uid

    def test_sign_in_wrong_password(self, signed_in):
        """Test a failed sign-in leaves nobody signed in."""
        account, _ = signed_in
        run(account.sign_out())
        user, ok, message = run(account.sign_in("ada@example.com", "wrong!"))
        assert user is None
        assert ok is False
        assert message == "Invalid email or password."
        assert account.current_user is None

    def test_sign_in_blank_fields_skip_provider(self, store):
        """Test a blank sign-in form never reaches the identity provider."""
        identity = RecordingIdentityProvider()
        account, _ = create_app_components(identity=identity, store=store)

        for email, password in (("", ""), ("ada@example.com", ""), ("  ", "secret1")):
            user, ok, message = run(account.sign_in(email, password))
            assert (user, ok, message) == (None, False, "Please fill in all fields.")

        assert identity.sign_in_calls == []

    def test_auth_state_listener(self, flows):
        """Test the flow exposes provider state changes."""
        account, _ = flows
        seen = []
        unsubscribe = account.on_auth_state_changed(
            lambda user: seen.append(user.email if user else None)
        )
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        run(account.sign_out())
        unsubscribe()
        run(account.sign_in("ada@example.com", "secret1"))

        assert seen == [None, "ada@example.com", None]


class TestDashboardFlow:
    """Tests for loading and changing the signed-in user's ledger."""

    def test_requires_sign_in(self, flows):
        """Test every dashboard action needs a current user."""
        _, dashboard = flows
        assert run(dashboard.load()) == (None, False, SIGN_IN_REQUIRED)
        assert run(dashboard.add_transaction("Pay", "10", "income")) == (None, False, SIGN_IN_REQUIRED)
        assert run(dashboard.delete_transaction("any")) == (None, False, SIGN_IN_REQUIRED)

    def test_load_new_user(self, signed_in):
        """Test a new account starts with an empty ledger and zero balance."""
        _, dashboard = signed_in
        snapshot, ok, message = run(dashboard.load())
        assert ok is True
        assert message == ""
        assert snapshot.transactions == []
        assert snapshot.balance == 0
        assert snapshot.display_name("ada@example.com") == "Ada Lovelace"

    def test_add_refreshes_balance(self, signed_in):
        """Test adding income and an expense updates the balance."""
        _, dashboard = signed_in
        run(dashboard.add_transaction("Salary", "100", "income"))
        snapshot, ok, message = run(dashboard.add_transaction("Groceries", "40", "expense"))

        assert ok is True
        assert message == "Transaction added."
        assert snapshot.balance == Decimal("60")
        assert sorted(t.description for t in snapshot.transactions) == ["Groceries", "Salary"]

    def test_add_invalid_input(self, signed_in, store):
        """Test validation messages reach the user and nothing is stored."""
        _, dashboard = signed_in
        assert run(dashboard.add_transaction("", "", "income")) == (
            None, False, "Please fill in both fields."
        )
        assert run(dashboard.add_transaction("Lunch", "abc", "expense")) == (
            None, False, "Amount must be a number."
        )
        assert store.count("transactions") == 0

    def test_add_store_failure(self, identity):
        """Test a failed write gives the add failure message."""
        account, dashboard = create_app_components(
            identity=identity, store=FlakyDocumentStore(failing={"add"})
        )
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        assert run(dashboard.add_transaction("Pay", "10", "income")) == (None, False, ADD_FAILED)

    def test_load_store_failure(self, identity):
        """Test a failed fetch gives the load failure message."""
        account, dashboard = create_app_components(
            identity=identity, store=FlakyDocumentStore(failing={"query"})
        )
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        assert run(dashboard.load()) == (None, False, LOAD_FAILED)

    def test_huge_amount_rejected_before_store(self, signed_in, store):
        """Test an amount that can't be stored faithfully is refused up front."""
        _, dashboard = signed_in
        snapshot, ok, message = run(dashboard.add_transaction("Big", "1e400", "income"))
        assert snapshot is None
        assert ok is False
        assert message.startswith("Amount cannot exceed")
        assert store.count("transactions") == 0

    def test_added_amount_reappears_after_refetch(self, signed_in):
        """Test the largest accepted amount survives the round trip through the store."""
        _, dashboard = signed_in
        snapshot, ok, _ = run(dashboard.add_transaction("Big", "1000000000000", "income"))
        assert ok is True
        assert [t.amount for t in snapshot.transactions] == [Decimal("1000000000000")]

    def test_formatted_balance_uses_configured_currency(self, identity, store, monkeypatch):
        """Test the snapshot formats the balance with CURRENCY_SYMBOL."""
        monkeypatch.setenv("CURRENCY_SYMBOL", "₹")
        account, dashboard = create_app_components(
            settings=Settings(), identity=identity, store=store
        )
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        run(dashboard.add_transaction("Salary", "1500", "income"))
        snapshot, _, _ = run(dashboard.add_transaction("Rent", "234.5", "expense"))

        assert snapshot.formatted_balance == "₹1,265.50"

    def test_delete(self, signed_in):
        """Test a deleted transaction disappears and the balance follows."""
        _, dashboard = signed_in
        run(dashboard.add_transaction("Salary", "100", "income"))
        snapshot, _, _ = run(dashboard.add_transaction("Groceries", "40", "expense"))
        groceries = next(t for t in snapshot.transactions if t.description == "Groceries")

        snapshot, ok, message = run(dashboard.delete_transaction(groceries.id))

        assert ok is True
        assert message == "Transaction deleted."
        assert groceries.id not in [t.id for t in snapshot.transactions]
        assert snapshot.balance == Decimal("100")

    def test_second_delete_fails(self, signed_in):
        """Test deleting the same transaction twice reports a failure."""
        _, dashboard = signed_in
        snapshot, _, _ = run(dashboard.add_transaction("Once", "1", "income"))
        txn_id = snapshot.transactions[0].id

        run(dashboard.delete_transaction(txn_id))
        assert run(dashboard.delete_transaction(txn_id)) == (None, False, DELETE_FAILED)

    def test_users_see_only_their_own_ledger(self, flows):
        """Test two accounts sharing a store don't see each other's entries."""
        account, dashboard = flows
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        run(dashboard.add_transaction("Ada's pay", "10", "income"))
        run(account.sign_out())

        run(account.register("Bob", "bob@example.com", "secret1", "secret1"))
        snapshot, _, _ = run(dashboard.load())
        assert snapshot.transactions == []


class TestAuditPersistence:
    """Tests for audit events written through the flows."""

    def test_events_persisted_when_enabled(self, identity, store, monkeypatch):
        """Test the audit collection fills up when persistence is on."""
        monkeypatch.setenv("PERSIST_AUDIT_EVENTS", "true")
        account, dashboard = create_app_components(
            settings=Settings(), identity=identity, store=store
        )
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        run(dashboard.add_transaction("Pay", "10", "income"))

        assert store.count("audit_events") == 2

    def test_events_not_persisted_by_default(self, flows, store):
        """Test nothing lands in the audit collection by default."""
        account, dashboard = flows
        run(account.register("Ada", "ada@example.com", "secret1", "secret1"))
        run(dashboard.add_transaction("Pay", "10", "income"))
        assert store.count("audit_events") == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
