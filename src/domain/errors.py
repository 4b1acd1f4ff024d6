from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .money import Currency


class LedgerError(Exception):
    """Base class for recoverable ledger failures surfaced to the caller."""


class ParseError(LedgerError):
    def __init__(self, *, field: str, raw_input: str, cause: str) -> None:
        self.field = field
        self.raw_input = raw_input
        self.cause = cause
        super().__init__(f"Parse {field} error: {cause} (input={raw_input!r})")


class UnitMismatch(LedgerError):
    def __init__(self, *, left: Currency, right: Currency) -> None:
        self.left = left
        self.right = right
        super().__init__(f"Cannot combine amounts in different units: {left} and {right}")


class NoSecondaryLedger(LedgerError):
    def __init__(self, *, account_name: str) -> None:
        self.account_name = account_name
        super().__init__(f"Account {account_name!r} is fiat and has no secondary ledger")


class InvalidCurrencyCombination(LedgerError):
    def __init__(self, *, primary: Currency, secondary: Currency | None) -> None:
        self.primary = primary
        self.secondary = secondary
        super().__init__(f"Invalid currency combination: account={primary} secondary={secondary}")


class IndexOutOfRange(LedgerError):
    def __init__(self, *, index: int, length: int, what: str = "transaction") -> None:
        self.index = index
        self.length = length
        self.what = what
        super().__init__(f"No {what} at index {index} (have {length})")


class LookupFailed(LedgerError):
    def __init__(self, *, currency: Currency, cause: str) -> None:
        self.currency = currency
        self.cause = cause
        super().__init__(f"Price lookup for {currency} failed: {cause}")


class DuplicateAccountName(LedgerError):
    def __init__(self, *, name: str) -> None:
        self.name = name
        super().__init__(f"Duplicate account name: {name!r}")


__all__ = [
    "DuplicateAccountName",
    "IndexOutOfRange",
    "InvalidCurrencyCombination",
    "LedgerError",
    "LookupFailed",
    "NoSecondaryLedger",
    "ParseError",
    "UnitMismatch",
]
