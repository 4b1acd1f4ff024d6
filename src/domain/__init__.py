"""Domain models and rules of the personal ledger.

This package holds the in-memory (Pydantic) models for accounts, their
transaction histories and recurring templates, plus the balance, window and
materialization logic. Nothing here touches the clock, the network or the
filesystem, so the rules can be tested with explicit timestamps.
"""

__all__ = [
    "account",
    "accounts",
    "errors",
    "ledger",
    "money",
    "periods",
    "pricing",
    "recurrence",
    "transaction",
]
