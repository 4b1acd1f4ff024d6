from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator

from .errors import UnitMismatch


class CurrencyKind(StrEnum):
    FIAT = "fiat"
    CRYPTO = "crypto"
    METAL = "metal"
    STOCK = "stock"
    MUTUAL_FUND = "mutual_fund"
    REAL_ESTATE = "real_estate"


class Currency(BaseModel):
    """Unit an amount is expressed in.

    ``symbol`` is the fiat code, ticker or metal symbol (upper-cased), or the
    street address of a real-estate holding (kept verbatim). Non-fiat units
    carry the fiat code they are priced in as ``quote``.
    """

    model_config = ConfigDict(frozen=True)

    kind: CurrencyKind
    symbol: str
    quote: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        symbol = str(data.get("symbol", "")).strip()
        if data.get("kind") != CurrencyKind.REAL_ESTATE:
            symbol = symbol.upper()
        data["symbol"] = symbol
        if data.get("quote") is not None:
            data["quote"] = str(data["quote"]).strip().upper()
        return data

    @model_validator(mode="after")
    def _validate_fields(self) -> Currency:
        if not self.symbol:
            msg = "Currency.symbol must be non-empty"
            raise ValueError(msg)
        if self.kind == CurrencyKind.FIAT and self.quote is not None:
            msg = "fiat currencies are not quoted in another unit"
            raise ValueError(msg)
        if self.kind != CurrencyKind.FIAT and not self.quote:
            msg = f"{self.kind} currencies need a fiat quote"
            raise ValueError(msg)
        return self

    @classmethod
    def fiat(cls, code: str) -> Currency:
        return cls(kind=CurrencyKind.FIAT, symbol=code)

    @classmethod
    def crypto(cls, symbol: str, quote: str = "USD") -> Currency:
        return cls(kind=CurrencyKind.CRYPTO, symbol=symbol, quote=quote)

    @classmethod
    def metal(cls, symbol: str, quote: str = "USD") -> Currency:
        return cls(kind=CurrencyKind.METAL, symbol=symbol, quote=quote)

    @classmethod
    def stock(cls, symbol: str, quote: str = "USD") -> Currency:
        return cls(kind=CurrencyKind.STOCK, symbol=symbol, quote=quote)

    @classmethod
    def mutual_fund(cls, symbol: str, quote: str = "USD") -> Currency:
        return cls(kind=CurrencyKind.MUTUAL_FUND, symbol=symbol, quote=quote)

    @classmethod
    def real_estate(cls, address: str, quote: str = "USD") -> Currency:
        return cls(kind=CurrencyKind.REAL_ESTATE, symbol=address, quote=quote)

    @property
    def is_fiat(self) -> bool:
        return self.kind == CurrencyKind.FIAT

    @property
    def primary_currency(self) -> Currency:
        """Fiat unit of the primary ledger of an account held in this currency."""
        if self.quote is None:
            return self
        return Currency.fiat(self.quote)

    def __str__(self) -> str:
        if self.quote is None:
            return self.symbol
        return f"{self.symbol} in {self.quote}"


class Money(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: Currency

    @classmethod
    def zero(cls, currency: Currency) -> Money:
        return cls(amount=Decimal(0), currency=currency)

    def __add__(self, other: Money) -> Money:
        return add(self, other)


def add(a: Money, b: Money) -> Money:
    """Sum two amounts; only amounts in the exact same unit can be added."""
    if a.currency != b.currency:
        raise UnitMismatch(left=a.currency, right=b.currency)
    return Money(amount=a.amount + b.amount, currency=a.currency)


__all__ = ["Currency", "CurrencyKind", "Money", "add"]
