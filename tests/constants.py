from datetime import datetime, timezone

from domain.money import Currency

USD = Currency.fiat("USD")
EUR = Currency.fiat("EUR")
ETH = Currency.crypto("ETH", quote="USD")
BTC = Currency.crypto("BTC", quote="USD")
GOLD = Currency.metal("XAU", quote="USD")
HOUSE = Currency.real_estate("12 Elm Street, Springfield")

NOW = datetime(2024, 4, 15, 10, 30, tzinfo=timezone.utc)
