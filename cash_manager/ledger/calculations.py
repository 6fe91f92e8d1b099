"""
Ledger arithmetic.

Pure functions over lists of transactions; nothing here touches a store.
"""

from decimal import Decimal
from typing import Iterable

from cash_manager.models.ledger import LedgerSummary, Transaction, TransactionType


def compute_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expenses. An empty ledger balances to zero."""
    return sum((t.signed_amount for t in transactions), Decimal("0"))


def sort_by_recency(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first. Ties keep their input order (sorted() is stable)."""
    return sorted(transactions, key=lambda t: t.created_at, reverse=True)


def summarize(transactions: Iterable[Transaction]) -> LedgerSummary:
    """Income total, expense total and balance in one pass."""
    income = Decimal("0")
    expense = Decimal("0")
    count = 0
    for transaction in transactions:
        count += 1
        if transaction.type == TransactionType.INCOME:
            income += transaction.amount
        else:
            expense += transaction.amount
    return LedgerSummary(
        income_total=income,
        expense_total=expense,
        balance=income - expense,
        transaction_count=count,
    )
