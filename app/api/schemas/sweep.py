from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from app.api.schemas.backtest import StrategyPerformanceResponse
from app.domain.services.sweep import DEFAULT_BIN_RANGES, DEFAULT_LIQUIDITY_LEVELS, DEFAULT_PERIODS


class SweepRequest(BaseModel):
    pool_address: str | None = Field(None, description="Endereco da pool DLMM; usa BACKTEST_POOL_ADDRESS quando omitido.")
    liquidity_levels: list[Decimal] = Field(
        default_factory=lambda: list(DEFAULT_LIQUIDITY_LEVELS),
        min_length=1,
        description="Valores de liquidez em USD a comparar.",
    )
    bin_ranges: list[Decimal] = Field(
        default_factory=lambda: list(DEFAULT_BIN_RANGES),
        min_length=1,
        description="Faixas de preco (%) a comparar.",
    )
    periods: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PERIODS),
        min_length=1,
        description="Janelas historicas a comparar (ex.: 7d, 30d).",
    )
    concentration: Literal["low", "medium", "high"] = Field("medium", description="Concentracao das curvas.")


class SweepConfigResponse(BaseModel):
    liquidity_usd: Decimal
    bin_range_percent: Decimal
    period: str
    days: int
    label: str


class SweepRowResponse(BaseModel):
    config: SweepConfigResponse
    total_bins: int
    snapshot_count: int
    strategies: list[StrategyPerformanceResponse]
    missing_market_days: list[str]


class SweepFailureResponse(BaseModel):
    config: SweepConfigResponse
    reason: str


class SweepBestPerformerResponse(BaseModel):
    strategy: str
    config: SweepConfigResponse
    value: Decimal


class SweepResponse(BaseModel):
    pool_address: str
    rows: list[SweepRowResponse]
    failures: list[SweepFailureResponse]
    best_efficiency: SweepBestPerformerResponse | None
    best_fees: SweepBestPerformerResponse | None
