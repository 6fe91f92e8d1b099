"""
Cash Manager - Source Package

A personal income/expense ledger backed by a hosted identity provider
and document store.

DESIGN PRINCIPLES:
1. Validate locally, before any network call
2. Fail visibly: every failed call ends in a message for the user
3. The balance is always derived, never stored
4. Every change is auditable
5. Identity provider and document store are swappable
"""

__version__ = "1.0.0"
__author__ = "Cash Manager Team"
