"""Reconcile accounts with a brokerage holdings export (Investor 360 CSV).

Every row with a symbol becomes an ``Investor 360: <symbol>`` account. Rows
priced at exactly 1 are cash and adjust the primary (USD) ledger; anything
else is a security whose secondary ledger is adjusted to the reported
quantity. Adjustments use the observed quantity, so re-importing the same
file appends zero-amount entries.
"""

from __future__ import annotations

import csv
import logging
from csv import DictReader
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from domain.accounts import Accounts
from domain.errors import LedgerError, ParseError
from domain.money import Currency
from domain.transaction import parse_amount

logger = logging.getLogger(__name__)

ACCOUNT_PREFIX = "Investor 360: "
CASH_CURRENCY = Currency.fiat("USD")
REQUIRED_COLUMNS = ("Description", "Symbol", "Quantity", "Price ($)")


class HoldingsImportError(LedgerError):
    def __init__(self, message: str, *, path: Path, line: int | None = None) -> None:
        self.path = path
        self.line = line
        location = f"{path}:{line}" if line is not None else str(path)
        super().__init__(f"{message} ({location})")


class HoldingRecord(BaseModel):
    description: str = Field(default="", alias="Description")
    symbol: str = Field(default="", alias="Symbol")
    quantity: str = Field(default="", alias="Quantity")
    price: str = Field(default="", alias="Price ($)")

    @field_validator("description", "symbol", "quantity", "price", mode="before")
    @classmethod
    def _strip(cls, value: str | None) -> str:
        return (value or "").strip()

    @property
    def account_name(self) -> str:
        return f"{ACCOUNT_PREFIX}{self.symbol}"


@dataclass(frozen=True)
class Holding:
    line: int
    account_name: str
    currency: Currency
    quantity: Decimal
    description: str

    @property
    def is_cash(self) -> bool:
        return self.currency.is_fiat


@dataclass
class HoldingsImportResult:
    created: list[str] = field(default_factory=list)
    adjusted: list[str] = field(default_factory=list)


class HoldingsImporter:
    def __init__(self, source_path: Path) -> None:
        self._source_path = Path(source_path)

    def import_into(self, accounts: Accounts, *, now: datetime) -> HoldingsImportResult:
        """Apply every holding, or none of them if any row is invalid."""
        holdings = self.load_holdings()
        self._check_currencies(accounts, holdings)

        result = HoldingsImportResult()
        for holding in holdings:
            index = accounts.index_of(holding.account_name)
            if index is None:
                account = accounts.add_account(holding.account_name, holding.currency)
                result.created.append(account.name)
            else:
                account = accounts[index]
            raw_quantity = format(holding.quantity, "f")
            if holding.is_cash:
                account.submit_balance_adjustment(raw_quantity, "", holding.description, now)
            else:
                account.submit_secondary_balance_adjustment(raw_quantity, "", holding.description, now)
            result.adjusted.append(account.name)

        logger.info(
            "Imported %d holdings from %s (%d new accounts)",
            len(result.adjusted),
            self._source_path,
            len(result.created),
        )
        return result

    def load_holdings(self) -> list[Holding]:
        holdings: list[Holding] = []
        for line, record in self._read_records():
            # Section headers and totals carry no symbol.
            if not record.symbol:
                continue
            try:
                holdings.append(self._holding(line, record))
            except ParseError as exc:
                raise HoldingsImportError(str(exc), path=self._source_path, line=line) from exc
        return holdings

    def _read_records(self) -> list[tuple[int, HoldingRecord]]:
        records: list[tuple[int, HoldingRecord]] = []
        try:
            with self._source_path.open(encoding="utf-8", newline="") as handle:
                reader = DictReader(handle)
                missing = [column for column in REQUIRED_COLUMNS if column not in (reader.fieldnames or [])]
                if missing:
                    raise HoldingsImportError(f"Missing columns: {', '.join(missing)}", path=self._source_path)
                for row in reader:
                    # DictReader files overflow cells under the None key.
                    cells = {key: value for key, value in row.items() if key is not None}
                    records.append((reader.line_num, HoldingRecord.model_validate(cells)))
        except OSError as exc:
            raise HoldingsImportError(f"Cannot read holdings: {exc}", path=self._source_path) from exc
        except (csv.Error, UnicodeDecodeError) as exc:
            raise HoldingsImportError(f"Malformed holdings file: {exc}", path=self._source_path) from exc
        return records

    @staticmethod
    def _holding(line: int, record: HoldingRecord) -> Holding:
        quantity = parse_amount(record.quantity, field="quantity")
        price = parse_amount(record.price, field="price")
        currency = CASH_CURRENCY if price == 1 else Currency.stock(record.symbol, quote=CASH_CURRENCY.symbol)
        return Holding(
            line=line,
            account_name=record.account_name,
            currency=currency,
            quantity=quantity,
            description=record.description,
        )

    def _check_currencies(self, accounts: Accounts, holdings: list[Holding]) -> None:
        expected: dict[str, Currency] = {}
        for holding in holdings:
            index = accounts.index_of(holding.account_name)
            current = expected.get(holding.account_name)
            if current is None and index is not None:
                current = accounts[index].currency
            if current is not None and current != holding.currency:
                raise HoldingsImportError(
                    f"{holding.account_name} is held in {current}, not {holding.currency}",
                    path=self._source_path,
                    line=holding.line,
                )
            expected[holding.account_name] = holding.currency


__all__ = ["HoldingRecord", "Holding", "HoldingsImportError", "HoldingsImportResult", "HoldingsImporter"]
