from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import requests

# API docs: https://docs.kraken.com/api/docs/rest-api/get-ohlc-data
DAY_MINUTES = 1440


class KrakenAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass(frozen=True)
class OHLC:
    pair: str
    timestamp: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    vwap: Decimal
    volume: Decimal
    count: int


class KrakenClient:
    """Client for Kraken's public market-data endpoints (no API key needed)."""

    def __init__(
        self,
        *,
        base_url: str = "https://api.kraken.com",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_ohlc(self, *, pair: str, interval: int = DAY_MINUTES, since: int | None = None) -> list[OHLC]:
        if not pair:
            msg = "pair must be provided"
            raise ValueError(msg)
        if interval <= 0:
            msg = "interval must be > 0"
            raise ValueError(msg)

        params: dict[str, Any] = {"pair": pair, "interval": interval}
        if since is not None:
            params["since"] = since
        payload = self._request("GET", "/0/public/OHLC", params=params)

        result = payload.get("result")
        if not isinstance(result, dict):
            raise KrakenAPIError("Kraken OHLC payload missing result", payload=payload)
        series = [(name, rows) for name, rows in result.items() if name != "last"]
        if len(series) != 1 or not isinstance(series[0][1], list):
            raise KrakenAPIError("Kraken OHLC payload has unexpected result shape", payload=payload)

        name, rows = series[0]
        return [self._parse_row(name, row) for row in rows]

    def latest_close(self, *, pair: str, interval: int = DAY_MINUTES) -> Decimal:
        candles = self.get_ohlc(pair=pair, interval=interval)
        if not candles:
            raise KrakenAPIError(f"Kraken returned no OHLC data for {pair}")
        return candles[-1].close

    def _request(self, method: str, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = getattr(exc.response, "status_code", None)
            raise KrakenAPIError("Kraken API request failed", status_code=status_code) from exc
        except requests.RequestException as exc:
            raise KrakenAPIError("Kraken API request failed") from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise KrakenAPIError("Kraken API returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload_raw, dict):
            raise KrakenAPIError("Kraken API returned unexpected payload type", payload=payload_raw)

        payload: dict[str, Any] = payload_raw
        errors = payload.get("error") or []
        if errors:
            message = "; ".join(str(error) for error in errors)
            raise KrakenAPIError(message, status_code=response.status_code, payload=payload)

        return payload

    @staticmethod
    def _parse_row(pair: str, row: Any) -> OHLC:
        if not isinstance(row, list) or len(row) < 8:
            raise KrakenAPIError("Kraken OHLC row has unexpected shape", payload=row)
        try:
            candle = OHLC(
                pair=pair,
                timestamp=datetime.fromtimestamp(int(row[0]), tz=timezone.utc),
                open=Decimal(str(row[1])),
                high=Decimal(str(row[2])),
                low=Decimal(str(row[3])),
                close=Decimal(str(row[4])),
                vwap=Decimal(str(row[5])),
                volume=Decimal(str(row[6])),
                count=int(row[7]),
            )
        except (InvalidOperation, ValueError, TypeError, OverflowError) as exc:
            raise KrakenAPIError(f"Kraken OHLC row has invalid values: {exc}", payload=row) from exc
        if not candle.close.is_finite():
            raise KrakenAPIError("Kraken OHLC close is not a finite number", payload=row)
        return candle


__all__ = ["DAY_MINUTES", "KrakenAPIError", "KrakenClient", "OHLC"]
