"""
Tests for local input validation.
"""

from decimal import Decimal

import pytest

from cash_manager.config import AppSettings
from cash_manager.models.ledger import TransactionType
from cash_manager.validation import LedgerValidator, ValidationError, parse_amount


@pytest.fixture
def validator():
    return LedgerValidator(AppSettings(max_description_length=20))


class TestParseAmount:
    """Tests for parse_amount."""

    def test_numeric_strings(self):
        """Test form strings are parsed exactly."""
        assert parse_amount("12.50") == Decimal("12.50")
        assert parse_amount(" 7 ") == Decimal("7")

    def test_numbers(self):
        """Test ints, floats and Decimals are accepted."""
        assert parse_amount(3) == Decimal("3")
        assert parse_amount(0.1) == Decimal("0.1")
        assert parse_amount(Decimal("9.99")) == Decimal("9.99")

    def test_rejects_non_numbers(self):
        """Test garbage, booleans and non-finite values are rejected."""
        for value in ("abc", "12,50", True, "NaN", "Infinity", float("inf"), [1]):
            assert parse_amount(value) is None


class TestTransactionValidation:
    """Tests for the transaction form."""

    def test_valid_input(self, validator):
        """Test a complete form passes."""
        result = validator.validate_transaction("Salary", "100", "income")
        assert result.is_valid

    def test_missing_fields(self, validator):
        """Test missing description and amount give the fill-in prompt."""
        result = validator.validate_transaction("", None, "income")
        assert result.error_count == 2
        assert validator.get_user_friendly_summary(result) == "Please fill in both fields."

    def test_whitespace_description_is_missing(self, validator):
        """Test a blank description counts as missing."""
        result = validator.validate_transaction("   ", "5", "expense")
        assert [i.field for i in result.issues] == ["description"]
        assert result.issues[0].issue_type == "missing"

    def test_non_numeric_amount(self, validator):
        """Test a non-numeric amount is reported."""
        result = validator.validate_transaction("Lunch", "ten", "expense")
        assert result.issues[0].issue_type == "not_numeric"
        assert validator.get_user_friendly_summary(result) == "Amount must be a number."

    def test_negative_amount(self, validator):
        """Test negative amounts are rejected."""
        result = validator.validate_transaction("Refund", "-5", "income")
        assert result.issues[0].issue_type == "negative"

    def test_zero_amount_allowed(self, validator):
        """Test zero is a valid non-negative amount."""
        assert validator.validate_transaction("Placeholder", "0", "income").is_valid

    def test_unknown_type(self, validator):
        """Test types other than income/expense are rejected."""
        result = validator.validate_transaction("Move", "5", "transfer")
        assert result.issues[0].field == "type"

    def test_description_too_long(self, validator):
        """Test the configured description limit applies."""
        result = validator.validate_transaction("x" * 21, "5", "income")
        assert result.issues[0].issue_type == "too_long"

    def test_amount_beyond_float_range_rejected(self, validator):
        """Test an amount that would be stored as infinity is rejected."""
        result = validator.validate_transaction("Lottery", "1e400", "income")
        assert [i.issue_type for i in result.issues] == ["too_large"]

    def test_amount_above_configured_maximum(self):
        """Test the configured maximum applies."""
        validator = LedgerValidator(AppSettings(max_amount=Decimal("1000")))
        assert validator.validate_transaction("Rent", "1000", "expense").is_valid
        result = validator.validate_transaction("Rent", "1000.01", "expense")
        assert result.issues[0].issue_type == "too_large"

    def test_amount_limited_to_cents(self, validator):
        """Test sub-cent amounts are rejected but trailing zeros are fine."""
        result = validator.validate_transaction("Tiny", "0.001", "income")
        assert result.issues[0].issue_type == "too_precise"
        assert validator.validate_transaction("Coffee", "3.500", "expense").is_valid
        assert validator.validate_transaction("Rent", "9E+2", "expense").is_valid

    def test_build_transaction(self, validator):
        """Test a valid form becomes an unsaved Transaction."""
        txn = validator.build_transaction("uid-1", "  Rent ", "900.00", "expense")
        assert txn.id is None
        assert txn.description == "Rent"
        assert txn.amount == Decimal("900.00")
        assert txn.type == TransactionType.EXPENSE

    def test_build_transaction_raises(self, validator):
        """Test invalid input raises ValidationError carrying the result."""
        with pytest.raises(ValidationError) as exc_info:
            validator.build_transaction("uid-1", "Lunch", "", "expense")
        assert str(exc_info.value) == "Please fill in both fields."
        assert exc_info.value.result.subject == "transaction"

    def test_build_transaction_requires_user(self, validator):
        """Test a transaction can't be built without an owner."""
        with pytest.raises(ValidationError) as exc_info:
            validator.build_transaction("", "Lunch", "5", "expense")
        assert exc_info.value.result.issues[-1].issue_type == "unauthenticated"


class TestRegistrationValidation:
    """Tests for the registration form."""

    def test_valid_registration(self, validator):
        """Test a complete, matching form passes."""
        result = validator.validate_registration("Ada", "ada@example.com", "secret1", "secret1")
        assert result.is_valid

    def test_passwords_must_match(self, validator):
        """Test mismatched passwords are rejected."""
        result = validator.validate_registration("Ada", "ada@example.com", "secret1", "secret2")
        assert validator.get_user_friendly_summary(result) == "Passwords do not match"

    def test_missing_fields(self, validator):
        """Test every field is required."""
        result = validator.validate_registration("", "", "", "")
        assert result.error_count == 4
        assert validator.get_user_friendly_summary(result) == "Please fill in all fields."

    def test_email_needs_at_sign(self, validator):
        """Test an obviously invalid e-mail is rejected."""
        result = validator.validate_registration("Ada", "ada.example.com", "secret1", "secret1")
        assert result.issues[0].issue_type == "invalid_format"

    def test_full_name_too_long(self, validator):
        """Test a name longer than the profile allows is rejected locally."""
        result = validator.validate_registration("A" * 201, "ada@example.com", "secret1", "secret1")
        assert [i.issue_type for i in result.issues] == ["too_long"]
        assert validator.validate_registration(
            "A" * 200, "ada@example.com", "secret1", "secret1"
        ).is_valid

    def test_email_too_long(self, validator):
        """Test an e-mail longer than the profile allows is rejected locally."""
        email = "a" * 310 + "@example.com"
        result = validator.validate_registration("Ada", email, "secret1", "secret1")
        assert result.issues[0].field == "email"
        assert result.issues[0].issue_type == "invalid_length"

    def test_email_too_short(self, validator):
        """Test a two-character e-mail is rejected."""
        result = validator.validate_registration("Ada", "a@", "secret1", "secret1")
        assert result.issues[0].issue_type == "invalid_length"


class TestSignInValidation:
    """Tests for the sign-in form."""

    def test_valid_sign_in(self, validator):
        """Test a filled-in form passes."""
        assert validator.validate_sign_in("ada@example.com", "secret1").is_valid

    def test_blank_fields(self, validator):
        """Test blank e-mail and password give the fill-in prompt."""
        result = validator.validate_sign_in("  ", "")
        assert result.error_count == 2
        assert validator.get_user_friendly_summary(result) == "Please fill in all fields."

    def test_missing_password(self, validator):
        """Test the password alone is required too."""
        result = validator.validate_sign_in("ada@example.com", None)
        assert [i.field for i in result.issues] == ["password"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
