"""
Core Data Models for Cash Manager

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Round-trip through the document store's wire format
4. Support the audit trail

DESIGN DECISION: Python attribute names are snake_case, but the documents in
the store use the camelCase keys the web client has always written
(fullName, userId, createdAt). Aliases bridge the two, and every model knows
how to turn itself into a store document and back.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# Field limits shared with the input validator
MAX_FULL_NAME_LENGTH = 200
MIN_EMAIL_LENGTH = 3
MAX_EMAIL_LENGTH = 320
AMOUNT_DECIMAL_PLACES = 2


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_iso(value: datetime) -> str:
    # Same shape as JavaScript's Date.toISOString(): millisecond precision, Z suffix
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_amount(amount: Decimal, currency_symbol: str = "$") -> str:
    """Format an amount for display, e.g. ``-$40.00``."""
    quantized = abs(amount).quantize(Decimal("0.01"))
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol}{quantized:,}"


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of a transaction relative to the balance."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# IDENTITY
# =============================================================================

class AuthUser(BaseModel):
    """
    An authenticated identity as handed out by the identity provider.

    The uid is opaque and stable; it is the key of the user's profile
    document and the value of every transaction's userId.
    """
    model_config = ConfigDict(frozen=True)

    uid: str = Field(..., min_length=1)
    email: str
    id_token: Optional[str] = Field(
        default=None,
        repr=False,
        description="Provider session token, if the provider issues one"
    )
    refresh_token: Optional[str] = Field(default=None, repr=False)


class UserProfile(BaseModel):
    """
    Profile document written once at registration.

    Immutable after creation.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(
        ...,
        min_length=1,
        description="Provider-assigned user ID (document ID)"
    )
    full_name: str = Field(
        ...,
        alias="fullName",
        min_length=1,
        max_length=MAX_FULL_NAME_LENGTH,
    )
    email: str = Field(..., min_length=MIN_EMAIL_LENGTH, max_length=MAX_EMAIL_LENGTH)
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
    )

    @field_validator('created_at')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def to_document(self) -> dict[str, Any]:
        """Fields as stored under users/<id>."""
        return {
            "fullName": self.full_name,
            "email": self.email,
            "createdAt": _to_iso(self.created_at),
        }

    @classmethod
    def from_document(cls, doc_id: str, fields: dict[str, Any]) -> "UserProfile":
        return cls.model_validate({**fields, "id": doc_id})


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry.

    Created and deleted on user action, never updated in place.
    The id is None until the document store has assigned one.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )

    id: Optional[str] = Field(
        default=None,
        description="Store-assigned document ID"
    )
    user_id: str = Field(
        ...,
        alias="userId",
        min_length=1,
        description="Owner (User.id)"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=1000,
    )
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Always non-negative; the type gives the sign"
    )
    type: TransactionType = Field(default=TransactionType.INCOME)
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
    )

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        """Stored amounts are JSON numbers; go through str to avoid binary float noise."""
        if isinstance(v, float):
            try:
                return Decimal(str(v))
            except InvalidOperation:
                return v
        return v

    @field_validator('created_at')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign it contributes to the balance."""
        if self.type == TransactionType.EXPENSE:
            return -self.amount
        return self.amount

    def to_document(self) -> dict[str, Any]:
        """Fields as stored in the transactions collection (id excluded)."""
        return {
            "description": self.description,
            "amount": float(self.amount),
            "type": self.type.value,
            "createdAt": _to_iso(self.created_at),
            "userId": self.user_id,
        }

    @classmethod
    def from_document(cls, doc_id: str, fields: dict[str, Any]) -> "Transaction":
        return cls.model_validate({**fields, "id": doc_id})


# =============================================================================
# DERIVED VIEWS
# =============================================================================

class LedgerSummary(BaseModel):
    """Totals over a set of transactions."""

    income_total: Decimal = Decimal("0")
    expense_total: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")
    transaction_count: int = Field(default=0, ge=0)


class LedgerSnapshot(BaseModel):
    """
    Everything a dashboard shows for one user: the profile, the
    transactions newest first, and the running balance.
    """

    user_id: str
    profile: Optional[UserProfile] = None
    transactions: list[Transaction] = Field(default_factory=list)
    balance: Decimal = Decimal("0")
    currency_symbol: str = "$"

    @property
    def formatted_balance(self) -> str:
        """Balance as the dashboard shows it, e.g. ``$60.00``."""
        return format_amount(self.balance, self.currency_symbol)

    def display_name(self, fallback: str) -> str:
        """Full name from the profile, or the fallback (usually the e-mail)."""
        if self.profile is not None:
            return self.profile.full_name
        return fallback

    @property
    def is_empty(self) -> bool:
        return not self.transactions


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_numeric', 'mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Result of validating user input before any network call."""

    subject: str = Field(
        ...,
        description="What was validated (e.g., 'transaction', 'registration')"
    )
    validated_at: datetime = Field(default_factory=utc_now)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
