from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterable

from pydantic import BaseModel, Field, NonNegativeInt, field_validator, model_validator

from .account import Account
from .errors import DuplicateAccountName, IndexOutOfRange, LookupFailed, ParseError, UnitMismatch
from .money import Currency, Money
from .periods import (
    EPOCH,
    current_month_window,
    current_year_window,
    ensure_utc,
    last_month_window,
    last_week_window,
    last_year_window,
)
from .pricing import PriceLookup
from .recurrence import materialize_monthly

logger = logging.getLogger(__name__)

USD = Currency.fiat("USD")


class AccountGroup(BaseModel):
    """Named selection of accounts, stored as positions in the accounts list."""

    name: str
    members: list[NonNegativeInt] = Field(default_factory=list)

    def account_inserted(self, index: int) -> None:
        self.members = [member + 1 if member >= index else member for member in self.members]

    def account_removed(self, index: int) -> None:
        self.members = [member - 1 if member > index else member for member in self.members if member != index]


class Accounts(BaseModel):
    """Every account of one ledger file, kept sorted by name."""

    accounts: list[Account] = Field(default_factory=list)
    checked_up_to: datetime = EPOCH
    groups: list[AccountGroup] = Field(default_factory=list)

    @field_validator("checked_up_to")
    @classmethod
    def _validate_watermark(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _validate_groups(self) -> Accounts:
        for group in self.groups:
            self._check_group_members(group.members)
        return self

    def __len__(self) -> int:
        return len(self.accounts)

    def __getitem__(self, index: int) -> Account:
        return self.account(index)

    def account(self, index: int) -> Account:
        self._check_index(index)
        return self.accounts[index]

    def index_of(self, name: str) -> int | None:
        for index, account in enumerate(self.accounts):
            if account.name == name:
                return index
        return None

    def currencies(self) -> list[Currency]:
        seen: list[Currency] = []
        for account in self.accounts:
            if account.currency not in seen:
                seen.append(account.currency)
        return seen

    # Lifecycle

    def add_account(self, name: str, currency: Currency) -> Account:
        account = Account.new(self._check_name(name), currency)
        self._insert_sorted(account)
        return account

    def rename_account(self, index: int, name: str) -> Account:
        self._check_index(index)
        name = self._check_name(name, ignore_index=index)
        member_of = [group for group in self.groups if index in group.members]
        account = self._remove(index)
        account.name = name
        new_index = self._insert_sorted(account)
        for group in member_of:
            group.members.append(new_index)
            group.members.sort()
        return account

    def delete_account(self, index: int) -> Account:
        self._check_index(index)
        return self._remove(index)

    def add_group(self, name: str, members: Iterable[int]) -> AccountGroup:
        member_list = sorted(set(members))
        self._check_group_members(member_list)
        group = AccountGroup(name=name.strip(), members=member_list)
        self.groups.append(group)
        return group

    def delete_group(self, index: int) -> AccountGroup:
        if not 0 <= index < len(self.groups):
            raise IndexOutOfRange(index=index, length=len(self.groups), what="group")
        return self.groups.pop(index)

    # Aggregation

    def total(self, currency: Currency) -> Decimal:
        """Sum of balances over the accounts held in ``currency``."""
        return self._sum_money(
            (account for account in self.accounts if account.currency == currency),
            Account.balance,
            currency.primary_currency,
        )

    def balance_in(self, fiat: Currency = USD) -> Decimal:
        """Sum of primary balances over every account whose primary ledger is in ``fiat``."""
        return self._sum_money(self._in_fiat(fiat), Account.balance, fiat)

    def total_for_window(self, start: datetime, end_exclusive: datetime, fiat: Currency = USD) -> Decimal:
        return self._sum_money(
            self._in_fiat(fiat),
            lambda account: account.sum_in_window(start, end_exclusive),
            fiat,
        )

    def total_for_last_week(self, now: datetime, fiat: Currency = USD) -> Decimal:
        return self.total_for_window(*last_week_window(now), fiat=fiat)

    def total_for_current_month(self, now: datetime, fiat: Currency = USD) -> Decimal:
        return self.total_for_window(*current_month_window(now), fiat=fiat)

    def total_for_last_month(self, now: datetime, fiat: Currency = USD) -> Decimal:
        return self.total_for_window(*last_month_window(now), fiat=fiat)

    def total_for_current_year(self, now: datetime, fiat: Currency = USD) -> Decimal:
        return self.total_for_window(*current_year_window(now), fiat=fiat)

    def total_for_last_year(self, now: datetime, fiat: Currency = USD) -> Decimal:
        return self.total_for_window(*last_year_window(now), fiat=fiat)

    def recurring_total(self, fiat: Currency = USD) -> Decimal:
        return self._sum_money(
            (account for account in self.accounts if account.currency == fiat),
            Account.recurring_total,
            fiat,
        )

    def project(self, months: int, fiat: Currency = USD) -> Decimal:
        """Linear estimate: today's balance plus ``months`` of recurring amounts."""
        if months < 0:
            raise ParseError(field="months", raw_input=str(months), cause="months must be >= 0")
        return self.balance_in(fiat) + months * self.recurring_total(fiat)

    def group_balance(self, index: int) -> Decimal:
        group = self._group(index)
        members = [self.accounts[member] for member in group.members]
        if not members:
            return Decimal(0)
        return self._sum_money(members, Account.balance, members[0].currency.primary_currency)

    def group_sum_in_window(self, index: int, start: datetime, end_exclusive: datetime) -> Decimal:
        group = self._group(index)
        members = [self.accounts[member] for member in group.members]
        if not members:
            return Decimal(0)
        return self._sum_money(
            members,
            lambda account: account.sum_in_window(start, end_exclusive),
            members[0].currency.primary_currency,
        )

    # Time-driven updates

    def materialize(self, now: datetime) -> int:
        result = materialize_monthly(self.accounts, self.checked_up_to, now)
        self.checked_up_to = result.watermark
        return result.appended

    def refresh_all_valuations(self, price_lookup: PriceLookup, now: datetime) -> list[LookupFailed]:
        """Value every non-fiat account; failed lookups are collected, not raised."""
        errors: list[LookupFailed] = []
        for account in self.accounts:
            if account.currency.is_fiat:
                continue
            try:
                account.refresh_valuation(price_lookup, now)
            except LookupFailed as exc:
                logger.warning("Skipping valuation of %s: %s", account.name, exc)
                errors.append(exc)
        return errors

    # Internals

    def _in_fiat(self, fiat: Currency) -> Iterable[Account]:
        return (account for account in self.accounts if account.currency.primary_currency == fiat)

    @staticmethod
    def _sum_money(
        accounts: Iterable[Account],
        value: Callable[[Account], Decimal],
        unit: Currency,
    ) -> Decimal:
        total = Money.zero(unit)
        for account in accounts:
            total = total + Money(amount=value(account), currency=account.currency.primary_currency)
        return total.amount

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.accounts):
            raise IndexOutOfRange(index=index, length=len(self.accounts), what="account")

    def _check_name(self, name: str, *, ignore_index: int | None = None) -> str:
        name = name.strip()
        if not name:
            raise ParseError(field="name", raw_input=name, cause="account name must be non-empty")
        existing = self.index_of(name)
        if existing is not None and existing != ignore_index:
            raise DuplicateAccountName(name=name)
        return name

    def _check_group_members(self, members: Iterable[int]) -> None:
        """Members must exist and share one primary fiat so group totals can be summed."""
        unit: Currency | None = None
        for index in members:
            self._check_index(index)
            member_unit = self.accounts[index].currency.primary_currency
            if unit is None:
                unit = member_unit
            elif member_unit != unit:
                raise UnitMismatch(left=unit, right=member_unit)

    def _group(self, index: int) -> AccountGroup:
        if not 0 <= index < len(self.groups):
            raise IndexOutOfRange(index=index, length=len(self.groups), what="group")
        return self.groups[index]

    def _insert_sorted(self, account: Account) -> int:
        index = next(
            (i for i, existing in enumerate(self.accounts) if existing.name > account.name),
            len(self.accounts),
        )
        self.accounts.insert(index, account)
        for group in self.groups:
            group.account_inserted(index)
        return index

    def _remove(self, index: int) -> Account:
        for group in self.groups:
            group.account_removed(index)
        return self.accounts.pop(index)


def parse_months(raw: str) -> int:
    text = raw.strip()
    try:
        months = int(text)
    except ValueError as exc:
        raise ParseError(field="months", raw_input=raw, cause=str(exc)) from exc
    if months < 0:
        raise ParseError(field="months", raw_input=raw, cause="months must be >= 0")
    return months


__all__ = ["AccountGroup", "Accounts", "USD", "parse_months"]
