from __future__ import annotations

from functools import lru_cache

from fastapi import HTTPException

from app.application.ports.ohlcv_port import OhlcvPort
from app.application.use_cases.get_pool_analytics import GetPoolAnalyticsUseCase
from app.application.use_cases.run_backtest import RunBacktestUseCase
from app.application.use_cases.run_sweep import RunSweepUseCase
from app.infrastructure.clients.ohlcv_client import HttpOhlcvClient, OhlcvClientSettings
from app.infrastructure.db.engine import get_engine
from app.infrastructure.db.repositories.ohlcv_repository import SqlOhlcvRepository
from app.infrastructure.db.repositories.pool_snapshot_repository import SqlPoolSnapshotRepository
from app.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _get_http_ohlcv_client() -> HttpOhlcvClient:
    settings = get_settings()
    return HttpOhlcvClient(
        OhlcvClientSettings(
            api_base=settings.ohlcv_api_base,
            symbol=settings.ohlcv_symbol,
            timeout_seconds=settings.ohlcv_timeout_seconds,
            max_retries=settings.ohlcv_max_retries,
            cache_ttl_seconds=settings.ohlcv_cache_ttl_seconds,
        )
    )


def _get_ohlcv_port() -> OhlcvPort:
    settings = get_settings()
    if settings.ohlcv_source == "db":
        return SqlOhlcvRepository(
            _get_db_engine(),
            exchange=settings.ohlcv_exchange,
            symbol=settings.ohlcv_symbol,
        )
    if settings.ohlcv_source != "http":
        raise HTTPException(status_code=500, detail="OHLCV_SOURCE must be http or db.")
    return _get_http_ohlcv_client()


def get_run_backtest_use_case() -> RunBacktestUseCase:
    settings = get_settings()
    return RunBacktestUseCase(
        snapshot_port=SqlPoolSnapshotRepository(_get_db_engine()),
        ohlcv_port=_get_ohlcv_port(),
        base_fee_rate=settings.base_fee_rate,
        bid_ask_center_epsilon=settings.bid_ask_center_epsilon,
        default_pool_address=settings.backtest_pool_address,
    )


def get_run_sweep_use_case() -> RunSweepUseCase:
    settings = get_settings()
    return RunSweepUseCase(
        snapshot_port=SqlPoolSnapshotRepository(_get_db_engine()),
        ohlcv_port=_get_ohlcv_port(),
        base_fee_rate=settings.base_fee_rate,
        bid_ask_center_epsilon=settings.bid_ask_center_epsilon,
        max_workers=settings.sweep_max_workers,
        default_pool_address=settings.backtest_pool_address,
    )


def get_pool_analytics_use_case() -> GetPoolAnalyticsUseCase:
    settings = get_settings()
    return GetPoolAnalyticsUseCase(
        snapshot_port=SqlPoolSnapshotRepository(_get_db_engine()),
        default_pool_address=settings.backtest_pool_address,
    )
