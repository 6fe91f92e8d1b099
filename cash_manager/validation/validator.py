"""
Local Input Validation

DESIGN DECISION: Everything the user types is checked here BEFORE any
network call. An invalid form never reaches the identity provider or the
document store.

Three forms are validated:
- Transaction entry: description and amount present, amount numeric,
  non-negative, within the configured maximum and in whole cents, type is
  income or expense
- Registration: all fields present, name and e-mail within the profile
  limits, passwords match
- Sign-in: e-mail and password present

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
whitespace. It reports them so the user can correct the form.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from cash_manager.config import AppSettings, get_settings
from cash_manager.models.ledger import (
    AMOUNT_DECIMAL_PLACES,
    MAX_EMAIL_LENGTH,
    MAX_FULL_NAME_LENGTH,
    MIN_EMAIL_LENGTH,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


MISSING_FIELDS_MESSAGES = {
    "transaction": "Please fill in both fields.",
    "registration": "Please fill in all fields.",
    "sign_in": "Please fill in all fields.",
}


class ValidationError(Exception):
    """Input rejected before any network call; carries the full result."""

    def __init__(self, result: ValidationResult, message: Optional[str] = None):
        self.result = result
        super().__init__(message or summarize_issues(result))


def summarize_issues(result: ValidationResult) -> str:
    """
    One-line, user-facing summary of a validation result.

    Missing fields collapse into a single "fill in the fields" prompt;
    otherwise the error messages are joined in order.
    """
    errors = [issue for issue in result.issues if issue.severity == "error"]
    if not errors:
        return ""
    if any(issue.issue_type == "missing" for issue in errors):
        return MISSING_FIELDS_MESSAGES.get(result.subject, "Please fill in all required fields.")
    return " ".join(issue.message for issue in errors)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any) -> Optional[Decimal]:
    """
    Turn a form value into a Decimal.

    Returns None when the value is not a finite number. Booleans are
    rejected even though Python treats them as ints.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite():
        return None
    return amount


class LedgerValidator:
    """Validates transaction, registration and sign-in input."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def validate_transaction(
        self,
        description: Any,
        amount: Any,
        transaction_type: Any = TransactionType.INCOME,
    ) -> ValidationResult:
        """Check a transaction form without building anything."""
        issues = []

        if _is_blank(description):
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            ))
        elif len(str(description).strip()) > self._settings.max_description_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=(
                    f"Description must be at most "
                    f"{self._settings.max_description_length} characters."
                ),
            ))

        if _is_blank(amount):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            ))
        else:
            parsed = parse_amount(amount)
            if parsed is None:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="not_numeric",
                    message="Amount must be a number.",
                ))
            elif parsed < 0:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="negative",
                    message="Amount cannot be negative. Use the expense type instead.",
                ))
            elif parsed > self._settings.max_amount:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="too_large",
                    message=f"Amount cannot exceed {self._settings.max_amount:,}.",
                ))
            elif parsed.normalize().as_tuple().exponent < -AMOUNT_DECIMAL_PLACES:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="too_precise",
                    message=f"Amount can have at most {AMOUNT_DECIMAL_PLACES} decimal places.",
                ))

        try:
            TransactionType(transaction_type)
        except ValueError:
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_choice",
                message="Type must be income or expense.",
            ))

        return ValidationResult(subject="transaction", issues=issues)

    def build_transaction(
        self,
        user_id: str,
        description: Any,
        amount: Any,
        transaction_type: Any = TransactionType.INCOME,
    ) -> Transaction:
        """
        Validate a transaction form and build the (unsaved) Transaction.

        Raises:
            ValidationError: If any field is invalid
        """
        result = self.validate_transaction(description, amount, transaction_type)
        if _is_blank(user_id):
            result.issues.append(ValidationIssue(
                field="user_id",
                issue_type="unauthenticated",
                message="You must be signed in to add transactions.",
            ))
        if result.has_errors:
            raise ValidationError(result)

        return Transaction(
            user_id=user_id,
            description=str(description).strip(),
            amount=parse_amount(amount),
            type=TransactionType(transaction_type),
        )

    def validate_registration(
        self,
        full_name: Any,
        email: Any,
        password: Any,
        confirm_password: Any,
    ) -> ValidationResult:
        """Check a registration form."""
        issues = []

        for field, value in (
            ("full_name", full_name),
            ("email", email),
            ("password", password),
            ("confirm_password", confirm_password),
        ):
            if _is_blank(value):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field.replace('_', ' ').capitalize()} is required",
                ))

        if not _is_blank(full_name) and len(str(full_name).strip()) > MAX_FULL_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="full_name",
                issue_type="too_long",
                message=f"Full name must be at most {MAX_FULL_NAME_LENGTH} characters.",
            ))

        if not _is_blank(email):
            email_length = len(str(email).strip())
            if "@" not in str(email):
                issues.append(ValidationIssue(
                    field="email",
                    issue_type="invalid_format",
                    message="Please enter a valid email address.",
                ))
            elif not MIN_EMAIL_LENGTH <= email_length <= MAX_EMAIL_LENGTH:
                issues.append(ValidationIssue(
                    field="email",
                    issue_type="invalid_length",
                    message=(
                        f"Email must be between {MIN_EMAIL_LENGTH} and "
                        f"{MAX_EMAIL_LENGTH} characters."
                    ),
                ))

        if (
            not _is_blank(password)
            and not _is_blank(confirm_password)
            and password != confirm_password
        ):
            issues.append(ValidationIssue(
                field="confirm_password",
                issue_type="mismatch",
                message="Passwords do not match",
            ))

        return ValidationResult(subject="registration", issues=issues)

    def validate_sign_in(self, email: Any, password: Any) -> ValidationResult:
        """Check the sign-in form: both fields are required."""
        issues = []
        for field, value in (("email", email), ("password", password)):
            if _is_blank(value):
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field.capitalize()} is required",
                ))
        return ValidationResult(subject="sign_in", issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """What we show the user when a form is rejected."""
        return summarize_issues(result)
