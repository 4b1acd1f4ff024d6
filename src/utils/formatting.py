from __future__ import annotations

from decimal import Decimal

from domain.money import Money

CENTS = 2
UNIT_PLACES = 8


def _quantize(value: Decimal, places: int) -> Decimal:
    return value.quantize(Decimal(1).scaleb(-places))


def format_currency(value: Decimal, places: int = CENTS) -> str:
    """Fixed number of places with thousands separators, e.g. ``1,234.50``."""
    return f"{_quantize(value, places):,.{places}f}"


def format_units(value: Decimal, places: int = UNIT_PLACES) -> str:
    """Holdings rounded to ``places`` with trailing zeros dropped, e.g. ``0.125``."""
    rounded = _quantize(value, places).normalize()
    # normalize() can leave an exponent on whole numbers (1E+3).
    if rounded == rounded.to_integral():
        return f"{rounded:,.0f}"
    return f"{rounded:,f}"


def format_money(money: Money) -> str:
    if money.currency.is_fiat:
        return f"{format_currency(money.amount)} {money.currency.symbol}"
    return f"{format_units(money.amount)} {money.currency.symbol}"


__all__ = ["format_currency", "format_money", "format_units"]
