from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Mapping

from domain.errors import LookupFailed
from domain.money import Currency, CurrencyKind
from domain.pricing import PriceLookup

from .goldapi_client import GoldApiClient, GoldApiError
from .kraken_client import KrakenAPIError, KrakenClient

if TYPE_CHECKING:
    from config import AppSettings

logger = logging.getLogger(__name__)


class StaticPriceLookup(PriceLookup):
    """Prices supplied up front, e.g. quotes typed in by hand."""

    def __init__(self, prices: Mapping[Currency, Decimal] | None = None) -> None:
        self._prices: dict[Currency, Decimal] = dict(prices or {})

    def set_price(self, currency: Currency, price: Decimal) -> None:
        self._prices[currency] = price

    def get_price(self, currency: Currency) -> Decimal:
        try:
            return self._prices[currency]
        except KeyError:
            raise LookupFailed(currency=currency, cause="no price configured") from None


class CompositePriceLookup(PriceLookup):
    """Route each currency to the lookup registered for its kind."""

    def __init__(self, by_kind: Mapping[CurrencyKind, PriceLookup]) -> None:
        if CurrencyKind.FIAT in by_kind:
            msg = "fiat currencies are not priced"
            raise ValueError(msg)
        self._by_kind = dict(by_kind)

    def get_price(self, currency: Currency) -> Decimal:
        lookup = self._by_kind.get(currency.kind)
        if lookup is None:
            raise LookupFailed(currency=currency, cause=f"no price source for {currency.kind} holdings")
        return lookup.get_price(currency)


class KrakenPriceLookup(PriceLookup):
    """Latest daily close of ``<symbol><quote>`` on Kraken."""

    def __init__(self, client: KrakenClient) -> None:
        self.client = client

    def get_price(self, currency: Currency) -> Decimal:
        pair = f"{currency.symbol}{currency.quote}"
        try:
            price = self.client.latest_close(pair=pair)
        except KrakenAPIError as exc:
            raise LookupFailed(currency=currency, cause=str(exc)) from exc
        logger.debug("Kraken close for %s: %s", pair, price)
        return price


class GoldApiPriceLookup(PriceLookup):
    def __init__(self, client: GoldApiClient) -> None:
        self.client = client

    def get_price(self, currency: Currency) -> Decimal:
        if currency.quote is None:
            raise LookupFailed(currency=currency, cause="fiat currencies are not priced")
        try:
            quote = self.client.get_spot_price(metal=currency.symbol, currency=currency.quote)
        except GoldApiError as exc:
            raise LookupFailed(currency=currency, cause=str(exc)) from exc
        logger.debug("goldapi.io price for %s/%s: %s", quote.metal, quote.currency, quote.price)
        return quote.price


def build_default_lookup(settings: AppSettings) -> CompositePriceLookup:
    by_kind: dict[CurrencyKind, PriceLookup] = {
        CurrencyKind.CRYPTO: KrakenPriceLookup(
            KrakenClient(base_url=settings.kraken_base_url, timeout=settings.http_timeout),
        ),
    }
    if settings.goldapi_api_key:
        by_kind[CurrencyKind.METAL] = GoldApiPriceLookup(
            GoldApiClient(
                access_token=settings.goldapi_api_key,
                base_url=settings.goldapi_base_url,
                timeout=settings.http_timeout,
            ),
        )
    else:
        logger.info("No goldapi.io key configured; metal accounts will not be valued")
    return CompositePriceLookup(by_kind)


__all__ = [
    "CompositePriceLookup",
    "GoldApiPriceLookup",
    "KrakenPriceLookup",
    "StaticPriceLookup",
    "build_default_lookup",
]
