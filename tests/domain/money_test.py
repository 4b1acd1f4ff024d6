from decimal import Decimal

import pytest
from pydantic import ValidationError

from domain.errors import UnitMismatch
from domain.money import Currency, CurrencyKind, Money, add
from tests.constants import ETH, HOUSE, USD


def test_add_same_unit_sums_amounts() -> None:
    total = add(Money(amount=Decimal("10.25"), currency=USD), Money(amount=Decimal("4.75"), currency=USD))

    assert total == Money(amount=Decimal("15.00"), currency=USD)


def test_add_rejects_mismatched_units() -> None:
    usd = Money(amount=Decimal("10"), currency=USD)
    eth = Money(amount=Decimal("1"), currency=ETH)

    with pytest.raises(UnitMismatch) as excinfo:
        add(usd, eth)

    assert excinfo.value.left == USD
    assert excinfo.value.right == ETH
    with pytest.raises(UnitMismatch):
        usd + eth


def test_add_rejects_different_fiat_codes() -> None:
    with pytest.raises(UnitMismatch):
        Money.zero(USD) + Money.zero(Currency.fiat("EUR"))


def test_currency_equality_is_structural() -> None:
    assert Currency.fiat("usd") == USD
    assert Currency.crypto("eth") == ETH
    assert Currency.crypto("ETH", quote="EUR") != ETH
    assert Currency.stock("ETH") != ETH
    assert len({Currency.fiat("USD"), USD}) == 1


def test_real_estate_address_is_kept_verbatim() -> None:
    assert HOUSE.kind == CurrencyKind.REAL_ESTATE
    assert HOUSE.symbol == "12 Elm Street, Springfield"
    assert str(HOUSE) == "12 Elm Street, Springfield in USD"


def test_primary_currency_of_non_fiat_is_its_quote() -> None:
    assert ETH.primary_currency == USD
    assert USD.primary_currency == USD
    assert Currency.metal("XAU", quote="eur").primary_currency == Currency.fiat("EUR")


def test_currency_validation() -> None:
    with pytest.raises(ValidationError):
        Currency(kind=CurrencyKind.FIAT, symbol="USD", quote="EUR")
    with pytest.raises(ValidationError):
        Currency(kind=CurrencyKind.CRYPTO, symbol="ETH")
    with pytest.raises(ValidationError):
        Currency.fiat("  ")
