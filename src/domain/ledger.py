from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from .errors import IndexOutOfRange, InvalidCurrencyCombination
from .money import Currency
from .transaction import Transaction


class TransactionLedger(BaseModel):
    """Date-ordered transaction history.

    Insertion re-sorts by date (stable, so same-day entries keep submission
    order). Deletion is positional and never rewrites the remaining balances.
    """

    transactions: list[Transaction] = Field(default_factory=list)

    @model_validator(mode="after")
    def _sort_loaded(self) -> TransactionLedger:
        self.transactions.sort(key=lambda tx: tx.date)
        return self

    def __len__(self) -> int:
        return len(self.transactions)

    def balance(self) -> Decimal:
        if not self.transactions:
            return Decimal(0)
        return self.transactions[-1].balance

    def append(self, tx: Transaction) -> Transaction:
        self.transactions.append(tx)
        self.transactions.sort(key=lambda item: item.date)
        return tx

    def delete(self, index: int) -> Transaction:
        if not 0 <= index < len(self.transactions):
            raise IndexOutOfRange(index=index, length=len(self.transactions))
        return self.transactions.pop(index)

    def in_window(self, start: datetime, end_exclusive: datetime) -> list[Transaction]:
        return [tx for tx in self.transactions if start <= tx.date < end_exclusive]

    def sum_in_window(self, start: datetime, end_exclusive: datetime) -> Decimal:
        return sum((tx.amount for tx in self.in_window(start, end_exclusive)), start=Decimal(0))

    def total_amount(self) -> Decimal:
        return sum((tx.amount for tx in self.transactions), start=Decimal(0))

    def min_balance(self) -> Decimal | None:
        return min((tx.balance for tx in self.transactions), default=None)

    def max_balance(self) -> Decimal | None:
        return max((tx.balance for tx in self.transactions), default=None)

    def first_date(self) -> datetime | None:
        return self.transactions[0].date if self.transactions else None

    def last_date(self) -> datetime | None:
        return self.transactions[-1].date if self.transactions else None


class SecondaryLedger(TransactionLedger):
    """Unit holdings of a non-fiat account; amounts are quantities, not money."""

    currency: Currency

    @model_validator(mode="after")
    def _validate_currency(self) -> SecondaryLedger:
        if self.currency.is_fiat:
            raise InvalidCurrencyCombination(primary=self.currency, secondary=self.currency)
        return self

    def units_held(self) -> Decimal:
        return self.total_amount()


__all__ = ["SecondaryLedger", "TransactionLedger"]
