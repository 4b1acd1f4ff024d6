from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    ledger_file: Path = Path("data/accounts.json")
    goldapi_api_key: str | None = None
    kraken_base_url: str = "https://api.kraken.com"
    goldapi_base_url: str = "https://www.goldapi.io"
    http_timeout: float = 10.0
    default_fiat: str = "USD"

    model_config = SettingsConfigDict(
        env_prefix="FIN_STAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@cache
def config() -> AppSettings:
    return AppSettings()
