"""
Data Models Package

This package contains all Pydantic models used in Cash Manager.
All data flowing through the system must conform to these schemas.
"""

from cash_manager.models.ledger import (
    AuthUser,
    LedgerSnapshot,
    LedgerSummary,
    Transaction,
    TransactionType,
    UserProfile,
    ValidationIssue,
    ValidationResult,
    format_amount,
    utc_now,
)
from cash_manager.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AuthUser",
    "LedgerSnapshot",
    "LedgerSummary",
    "Transaction",
    "TransactionType",
    "UserProfile",
    "ValidationIssue",
    "ValidationResult",
    "format_amount",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
