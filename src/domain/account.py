from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, PrivateAttr, model_validator

from .errors import IndexOutOfRange, InvalidCurrencyCombination, NoSecondaryLedger, ParseError
from .ledger import SecondaryLedger, TransactionLedger
from .money import Currency
from .periods import (
    current_month_window,
    current_week_window,
    current_year_window,
    last_month_window,
    last_week_window,
    last_year_window,
    month_window,
)
from .transaction import (
    RecurringTransactionTemplate,
    Transaction,
    parse_amount,
    submit_balance,
    submit_transaction,
)

if TYPE_CHECKING:
    from .pricing import PriceLookup


class Account(BaseModel):
    """A named account with its primary (fiat) history.

    Non-fiat accounts also track unit holdings in ``secondary``; their primary
    ledger records the fiat value of those holdings through valuation
    transactions.
    """

    name: str
    currency: Currency
    primary: TransactionLedger = Field(default_factory=TransactionLedger)
    secondary: SecondaryLedger | None = None
    recurring: list[RecurringTransactionTemplate] = Field(default_factory=list)

    _filter_window: tuple[int, int] | None = PrivateAttr(default=None)

    @model_validator(mode="after")
    def _validate_secondary(self) -> Account:
        if self.currency.is_fiat:
            if self.secondary is not None:
                raise InvalidCurrencyCombination(primary=self.currency, secondary=self.secondary.currency)
        elif self.secondary is None:
            self.secondary = SecondaryLedger(currency=self.currency)
        elif self.secondary.currency != self.currency:
            raise InvalidCurrencyCombination(primary=self.currency, secondary=self.secondary.currency)
        return self

    @classmethod
    def new(cls, name: str, currency: Currency) -> Account:
        return cls(name=name, currency=currency)

    # Balances and windows

    def balance(self) -> Decimal:
        return self.primary.balance()

    def secondary_balance(self) -> Decimal | None:
        if self.secondary is None:
            return None
        return self.secondary.balance()

    def sum_in_window(self, start: datetime, end_exclusive: datetime) -> Decimal:
        return self.primary.sum_in_window(start, end_exclusive)

    def sum_current_week(self, now: datetime) -> Decimal:
        return self.sum_in_window(*current_week_window(now))

    def sum_last_week(self, now: datetime) -> Decimal:
        return self.sum_in_window(*last_week_window(now))

    def sum_current_month(self, now: datetime) -> Decimal:
        return self.sum_in_window(*current_month_window(now))

    def sum_last_month(self, now: datetime) -> Decimal:
        return self.sum_in_window(*last_month_window(now))

    def sum_current_year(self, now: datetime) -> Decimal:
        return self.sum_in_window(*current_year_window(now))

    def sum_last_year(self, now: datetime) -> Decimal:
        return self.sum_in_window(*last_year_window(now))

    def recurring_total(self) -> Decimal:
        return sum((template.amount for template in self.recurring), start=Decimal(0))

    # Month filter

    def filter_by_month(self, year: int, month: int) -> list[Transaction]:
        start, end = _month_bounds(year, month)
        return self.primary.in_window(start, end)

    @property
    def filter_window(self) -> tuple[int, int] | None:
        return self._filter_window

    def set_filter(self, raw_year: str, raw_month: str) -> tuple[int, int] | None:
        """Set the month filter from user input; two empty fields clear it."""
        raw_year, raw_month = raw_year.strip(), raw_month.strip()
        if not raw_year and not raw_month:
            self._filter_window = None
            return None
        try:
            year = int(raw_year)
        except ValueError as exc:
            raise ParseError(field="year", raw_input=raw_year, cause=str(exc)) from exc
        try:
            month = int(raw_month)
        except ValueError as exc:
            raise ParseError(field="month", raw_input=raw_month, cause=str(exc)) from exc
        _month_bounds(year, month)
        self._filter_window = (year, month)
        return self._filter_window

    def visible_transactions(self) -> list[Transaction]:
        if self._filter_window is None:
            return list(self.primary.transactions)
        return self.filter_by_month(*self._filter_window)

    # Submission

    def submit_primary_transaction(self, raw_amount: str, raw_date: str, comment: str, now: datetime) -> Transaction:
        tx = submit_transaction(raw_amount, raw_date, comment, previous_balance=self.balance(), now=now)
        return self.primary.append(tx)

    def submit_secondary_transaction(self, raw_amount: str, raw_date: str, comment: str, now: datetime) -> Transaction:
        ledger = self._require_secondary()
        tx = submit_transaction(raw_amount, raw_date, comment, previous_balance=ledger.balance(), now=now)
        return ledger.append(tx)

    def submit_balance_adjustment(self, raw_balance: str, raw_date: str, comment: str, now: datetime) -> Transaction:
        tx = submit_balance(raw_balance, raw_date, comment, previous_balance=self.balance(), now=now)
        return self.primary.append(tx)

    def submit_secondary_balance_adjustment(
        self, raw_balance: str, raw_date: str, comment: str, now: datetime
    ) -> Transaction:
        ledger = self._require_secondary()
        tx = submit_balance(raw_balance, raw_date, comment, previous_balance=ledger.balance(), now=now)
        return ledger.append(tx)

    def submit_valuation(self, price: Decimal, now: datetime) -> Transaction:
        """Record the fiat value of the current holdings at ``price`` per unit.

        The entry moves no cash: amount is zero and balance is the value.
        """
        ledger = self._require_secondary()
        units = ledger.units_held()
        value = units * price
        tx = Transaction(
            amount=Decimal(0),
            balance=value,
            comment=f"{units} {self.currency.symbol} at {price} {self.currency.quote}",
            date=now,
        )
        return self.primary.append(tx)

    def refresh_valuation(self, price_lookup: PriceLookup, now: datetime) -> Transaction:
        self._require_secondary()
        price = price_lookup.get_price(self.currency)
        return self.submit_valuation(price, now)

    # Recurring templates

    def add_recurring_template(self, amount: Decimal, comment: str) -> RecurringTransactionTemplate:
        template = RecurringTransactionTemplate(amount=amount, comment=comment.strip())
        self.recurring.append(template)
        return template

    def submit_recurring_template(self, raw_amount: str, comment: str) -> RecurringTransactionTemplate:
        return self.add_recurring_template(parse_amount(raw_amount), comment)

    # Deletion

    def delete_primary_transaction(self, index: int) -> Transaction:
        return self.primary.delete(index)

    def delete_secondary_transaction(self, index: int) -> Transaction:
        return self._require_secondary().delete(index)

    def delete_recurring_template(self, index: int) -> RecurringTransactionTemplate:
        if not 0 <= index < len(self.recurring):
            raise IndexOutOfRange(index=index, length=len(self.recurring), what="recurring transaction")
        return self.recurring.pop(index)

    # Chart helpers

    def min_balance(self) -> Decimal | None:
        return self.primary.min_balance()

    def max_balance(self) -> Decimal | None:
        return self.primary.max_balance()

    def first_date(self) -> datetime | None:
        return self.primary.first_date()

    def last_date(self) -> datetime | None:
        return self.primary.last_date()

    def _require_secondary(self) -> SecondaryLedger:
        if self.secondary is None:
            raise NoSecondaryLedger(account_name=self.name)
        return self.secondary


def _month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise ParseError(field="month", raw_input=str(month), cause="month must be between 1 and 12")
    try:
        return month_window(year, month)
    except (ValueError, OverflowError) as exc:
        raise ParseError(field="year", raw_input=str(year), cause=str(exc)) from exc


__all__ = ["Account"]
