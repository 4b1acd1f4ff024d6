from __future__ import annotations

from decimal import Decimal
from typing import Protocol

from .money import Currency


class PriceLookup(Protocol):
    """Spot price of one unit of ``currency`` in its quote fiat.

    Implementations raise ``LookupFailed`` when no price can be obtained.
    """

    def get_price(self, currency: Currency) -> Decimal: ...
