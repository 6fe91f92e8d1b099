"""Ledger logic and service."""

from cash_manager.ledger.calculations import compute_balance, sort_by_recency, summarize
from cash_manager.ledger.service import LedgerService

__all__ = ["LedgerService", "compute_balance", "sort_by_recency", "summarize"]
