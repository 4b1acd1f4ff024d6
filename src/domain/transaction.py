from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import ParseError
from .periods import ensure_utc

DATE_FORMAT = "%Y-%m-%d"

# Optional sign, digits with optional comma thousands separators, optional fraction.
_AMOUNT_RE = re.compile(r"^[+-]?(?:(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d*)?|\.\d+)$")


class Transaction(BaseModel):
    """A single immutable entry of a ledger.

    ``balance`` is the running balance of the ledger right after this entry.
    """

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    balance: Decimal
    comment: str = ""
    date: datetime

    @field_validator("date")
    @classmethod
    def _validate_date(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class RecurringTransactionTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    comment: str = ""

    def to_transaction(self, *, date: datetime, previous_balance: Decimal) -> Transaction:
        return Transaction(
            amount=self.amount,
            balance=previous_balance + self.amount,
            comment=self.comment,
            date=date,
        )


def parse_amount(raw: str, field: str = "amount") -> Decimal:
    text = raw.strip()
    if not text:
        raise ParseError(field=field, raw_input=raw, cause="empty input")
    if not _AMOUNT_RE.match(text):
        raise ParseError(field=field, raw_input=raw, cause="not a decimal number")
    try:
        return Decimal(text.replace(",", ""))
    except InvalidOperation as exc:
        raise ParseError(field=field, raw_input=raw, cause=str(exc)) from exc


def parse_date(raw: str, fallback: datetime, field: str = "date") -> datetime:
    """Parse ``YYYY-MM-DD`` as midnight UTC; empty input yields ``fallback``."""
    text = raw.strip()
    if not text:
        return ensure_utc(fallback)
    try:
        parsed = datetime.strptime(text, DATE_FORMAT)
    except ValueError as exc:
        raise ParseError(field=field, raw_input=raw, cause=str(exc)) from exc
    return parsed.replace(tzinfo=timezone.utc)


def submit_transaction(
    raw_amount: str,
    raw_date: str,
    comment: str,
    *,
    previous_balance: Decimal,
    now: datetime,
) -> Transaction:
    amount = parse_amount(raw_amount)
    date = parse_date(raw_date, now)
    return Transaction(
        amount=amount,
        balance=previous_balance + amount,
        comment=comment.strip(),
        date=date,
    )


def submit_balance(
    raw_balance: str,
    raw_date: str,
    comment: str,
    *,
    previous_balance: Decimal,
    now: datetime,
) -> Transaction:
    """Build the transaction that moves the ledger to an observed balance."""
    observed = parse_amount(raw_balance, field="balance")
    date = parse_date(raw_date, now)
    return Transaction(
        amount=observed - previous_balance,
        balance=observed,
        comment=comment.strip(),
        date=date,
    )


__all__ = [
    "DATE_FORMAT",
    "RecurringTransactionTemplate",
    "Transaction",
    "parse_amount",
    "parse_date",
    "submit_balance",
    "submit_transaction",
]
