"""Input validation package."""

from cash_manager.validation.validator import (
    LedgerValidator,
    ValidationError,
    parse_amount,
    summarize_issues,
)

__all__ = ["LedgerValidator", "ValidationError", "parse_amount", "summarize_issues"]
