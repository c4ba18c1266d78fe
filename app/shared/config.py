from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    ohlcv_source: str
    ohlcv_api_base: str
    ohlcv_symbol: str
    ohlcv_exchange: str
    ohlcv_timeout_seconds: float
    ohlcv_max_retries: int
    ohlcv_cache_ttl_seconds: float
    backtest_pool_address: str
    base_fee_rate: Decimal
    bid_ask_center_epsilon: Decimal
    sweep_max_workers: int
    log_level: str


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        ohlcv_source=_env("OHLCV_SOURCE", "http").strip().lower(),
        ohlcv_api_base=_env("OHLCV_API_BASE", "https://api.mexc.com"),
        ohlcv_symbol=_env("OHLCV_SYMBOL", "SAROSUSDT"),
        ohlcv_exchange=_env("OHLCV_EXCHANGE", "mexc"),
        ohlcv_timeout_seconds=float(_env("OHLCV_TIMEOUT_SECONDS", "10")),
        ohlcv_max_retries=int(_env("OHLCV_MAX_RETRIES", "3")),
        ohlcv_cache_ttl_seconds=float(_env("OHLCV_CACHE_TTL_SECONDS", "300")),
        backtest_pool_address=_env("BACKTEST_POOL_ADDRESS", ""),
        base_fee_rate=Decimal(_env("BASE_FEE_RATE", "0.01")),
        bid_ask_center_epsilon=Decimal(_env("BID_ASK_CENTER_EPSILON", "0.001")),
        sweep_max_workers=int(_env("SWEEP_MAX_WORKERS", "1")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
