from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import requests

# API docs: https://www.goldapi.io/dashboard
GOLDAPI_BASE_URL = "https://www.goldapi.io"


class GoldApiError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, payload: Any | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


@dataclass(frozen=True)
class MetalQuote:
    metal: str
    currency: str
    price: Decimal
    timestamp: datetime


class GoldApiClient:
    def __init__(
        self,
        *,
        access_token: str,
        base_url: str = GOLDAPI_BASE_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not access_token:
            msg = "access_token must be provided"
            raise ValueError(msg)

        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def get_spot_price(self, *, metal: str, currency: str) -> MetalQuote:
        payload = self._request("GET", f"/api/{metal.upper()}/{currency.upper()}")

        price_raw = payload.get("price")
        if price_raw is None:
            raise GoldApiError("goldapi.io payload missing price", payload=payload)
        timestamp_raw = payload.get("timestamp")
        try:
            price = Decimal(str(price_raw))
            timestamp = (
                datetime.fromtimestamp(int(timestamp_raw), tz=timezone.utc)
                if timestamp_raw is not None
                else datetime.fromtimestamp(0, tz=timezone.utc)
            )
        except (InvalidOperation, ValueError, TypeError, OverflowError) as exc:
            raise GoldApiError(f"goldapi.io payload has invalid values: {exc}", payload=payload) from exc
        if not price.is_finite():
            raise GoldApiError("goldapi.io price is not a finite number", payload=payload)
        return MetalQuote(
            metal=str(payload.get("metal", metal)).upper(),
            currency=str(payload.get("currency", currency)).upper(),
            price=price,
            timestamp=timestamp,
        )

    def _request(self, method: str, path: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                timeout=self.timeout,
                headers={"x-access-token": self.access_token},
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            resp = exc.response
            status_code = getattr(resp, "status_code", None)
            message = "goldapi.io request failed"
            error_payload: Any | None = None
            if resp is not None:
                try:
                    error_payload = resp.json()
                    if isinstance(error_payload, dict) and error_payload.get("error"):
                        message = str(error_payload["error"])
                except ValueError:
                    error_payload = resp.text
            raise GoldApiError(message, status_code=status_code, payload=error_payload) from exc
        except requests.RequestException as exc:
            raise GoldApiError("goldapi.io request failed") from exc

        try:
            payload_raw = response.json()
        except ValueError as exc:
            raise GoldApiError("goldapi.io returned invalid JSON", payload=response.text) from exc

        if not isinstance(payload_raw, dict):
            raise GoldApiError("goldapi.io returned unexpected payload type", payload=payload_raw)
        if payload_raw.get("error"):
            raise GoldApiError(str(payload_raw["error"]), status_code=response.status_code, payload=payload_raw)
        return payload_raw


__all__ = ["GOLDAPI_BASE_URL", "GoldApiClient", "GoldApiError", "MetalQuote"]
