"""
Tests for the audit logger.
"""

import asyncio

import pytest

from cash_manager.audit import AuditLogger, create_correlation_id
from cash_manager.models.audit import AuditEventBuilder
from cash_manager.services.storage import InMemoryDocumentStore, StorageError


def run(coro):
    return asyncio.run(coro)


class BrokenDocumentStore(InMemoryDocumentStore):
    async def set_document(self, collection, document_id, fields):
        raise StorageError("write refused")


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_local_only(self):
        """Test logging without a store succeeds."""
        logger = AuditLogger()
        event = AuditEventBuilder.user_signed_out(user_id="uid-1")
        assert run(logger.log(event)) is True

    def test_persists_to_store(self):
        """Test events are stored under their event ID."""
        store = InMemoryDocumentStore()
        logger = AuditLogger(storage=store, collection="audit")
        event = AuditEventBuilder.transaction_deleted(transaction_id="t1", user_id="uid-1")

        assert run(logger.log(event)) is True

        fields = run(store.get_document("audit", str(event.event_id)))
        assert fields["event_type"] == "transaction_deleted"
        assert fields["entity_id"] == "t1"

    def test_store_failure_is_not_raised(self):
        """Test a failed audit write is reported but never raised."""
        logger = AuditLogger(storage=BrokenDocumentStore())
        event = AuditEventBuilder.system_error(error_type="Boom", error_message="boom")
        assert run(logger.log(event)) is False

    def test_convenience_methods(self):
        """Test the helper methods write one event each."""
        store = InMemoryDocumentStore()
        logger = AuditLogger(storage=store)
        correlation_id = create_correlation_id()

        run(logger.log_validation_failed(
            subject="transaction",
            issues=[{"field": "amount", "type": "missing"}],
            correlation_id=correlation_id,
        ))
        run(logger.log_external_service_error(
            service="identity_provider",
            operation="sign_in",
            error_message="timeout",
            correlation_id=correlation_id,
        ))
        run(logger.log_error(error_type="KeyError", error_message="x"))

        assert store.count("audit_events") == 3

    def test_correlation_ids_are_unique(self):
        """Test each user action gets its own correlation ID."""
        assert create_correlation_id() != create_correlation_id()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
