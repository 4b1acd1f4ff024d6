from __future__ import annotations

from decimal import Decimal
from unittest.mock import Mock

import pytest

from config import AppSettings
from domain.accounts import Accounts
from domain.errors import LookupFailed
from domain.money import Currency, CurrencyKind
from services.goldapi_client import GoldApiError, MetalQuote
from services.kraken_client import KrakenAPIError, KrakenClient
from services.price_lookup import (
    CompositePriceLookup,
    GoldApiPriceLookup,
    KrakenPriceLookup,
    StaticPriceLookup,
    build_default_lookup,
)
from tests.constants import BTC, ETH, GOLD, HOUSE, NOW, USD


def test_static_lookup_returns_configured_price() -> None:
    lookup = StaticPriceLookup({ETH: Decimal("3100")})
    lookup.set_price(HOUSE, Decimal("350000"))

    assert lookup.get_price(ETH) == Decimal("3100")
    assert lookup.get_price(HOUSE) == Decimal("350000")


def test_static_lookup_unknown_currency() -> None:
    with pytest.raises(LookupFailed) as excinfo:
        StaticPriceLookup().get_price(BTC)

    assert excinfo.value.currency == BTC


def test_composite_routes_by_kind() -> None:
    crypto = StaticPriceLookup({ETH: Decimal("3000")})
    metal = StaticPriceLookup({GOLD: Decimal("2300")})
    lookup = CompositePriceLookup({CurrencyKind.CRYPTO: crypto, CurrencyKind.METAL: metal})

    assert lookup.get_price(ETH) == Decimal("3000")
    assert lookup.get_price(GOLD) == Decimal("2300")
    with pytest.raises(LookupFailed, match="no price source"):
        lookup.get_price(Currency.stock("AAPL"))


def test_composite_refuses_fiat_source() -> None:
    with pytest.raises(ValueError):
        CompositePriceLookup({CurrencyKind.FIAT: StaticPriceLookup()})


def test_kraken_lookup_builds_pair() -> None:
    client = Mock()
    client.latest_close.return_value = Decimal("64000.1")

    price = KrakenPriceLookup(client).get_price(BTC)

    assert price == Decimal("64000.1")
    client.latest_close.assert_called_once_with(pair="BTCUSD")


def test_kraken_lookup_wraps_api_errors() -> None:
    client = Mock()
    client.latest_close.side_effect = KrakenAPIError("EQuery:Unknown asset pair")

    with pytest.raises(LookupFailed) as excinfo:
        KrakenPriceLookup(client).get_price(ETH)

    assert "Unknown asset pair" in excinfo.value.cause


def test_goldapi_lookup_returns_spot_price() -> None:
    client = Mock()
    client.get_spot_price.return_value = MetalQuote(metal="XAU", currency="USD", price=Decimal("2344.6"), timestamp=NOW)

    assert GoldApiPriceLookup(client).get_price(GOLD) == Decimal("2344.6")
    client.get_spot_price.assert_called_once_with(metal="XAU", currency="USD")


def test_goldapi_lookup_wraps_errors() -> None:
    client = Mock()
    client.get_spot_price.side_effect = GoldApiError("Invalid API Key")

    with pytest.raises(LookupFailed):
        GoldApiPriceLookup(client).get_price(GOLD)


def test_goldapi_lookup_rejects_fiat() -> None:
    with pytest.raises(LookupFailed):
        GoldApiPriceLookup(Mock()).get_price(USD)


def test_build_default_lookup_without_goldapi_key() -> None:
    lookup = build_default_lookup(AppSettings(goldapi_api_key=None))

    with pytest.raises(LookupFailed, match="no price source"):
        lookup.get_price(GOLD)


def test_build_default_lookup_with_goldapi_key() -> None:
    lookup = build_default_lookup(AppSettings(goldapi_api_key="token"))

    assert isinstance(lookup, CompositePriceLookup)
    assert isinstance(lookup._by_kind[CurrencyKind.METAL], GoldApiPriceLookup)
    assert isinstance(lookup._by_kind[CurrencyKind.CRYPTO], KrakenPriceLookup)


def test_bad_kraken_payload_is_collected_as_lookup_failure(accounts: Accounts) -> None:
    session = Mock()
    response = Mock()
    response.status_code = 200
    response.raise_for_status.return_value = None
    response.json.return_value = {
        "error": [],
        "result": {"XETHZUSD": [[1_704_067_200, "1", "1", "1", "oops", "1", "1", 1]], "last": 1_704_067_200},
    }
    session.request.return_value = response
    lookup = CompositePriceLookup({CurrencyKind.CRYPTO: KrakenPriceLookup(KrakenClient(session=session))})

    errors = accounts.refresh_all_valuations(lookup, NOW)

    assert len(errors) == 1
    assert errors[0].currency == ETH
    assert len(accounts[1].primary) == 0
