from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class BacktestRequest(BaseModel):
    pool_address: str | None = Field(None, description="Endereco da pool DLMM; usa BACKTEST_POOL_ADDRESS quando omitido.")
    total_liquidity_usd: Decimal = Field(..., gt=0, description="Liquidez total alocada por estrategia em USD.")
    bin_range_percent: Decimal = Field(..., gt=0, description="Faixa de preco para cada lado do bin ativo, em %.")
    period: str = Field("7d", description="Janela historica (1d, 7d, 30d, 90d, 1y ou contagem de dias).")
    concentration: Literal["low", "medium", "high"] = Field(
        "medium",
        description="Concentracao das curvas curve e bid_ask.",
    )
    include_timeline: bool = Field(False, description="Quando true, inclui metricas progressivas por snapshot.")


class BinAllocationResponse(BaseModel):
    bin_id: int
    liquidity_x: Decimal
    liquidity_y: Decimal
    total_liquidity_usd: Decimal
    weight: Decimal


class StrategyAllocationResponse(BaseModel):
    strategy: str
    total_liquidity_usd: Decimal
    total_base_amount: Decimal
    total_quote_amount: Decimal
    bins: list[BinAllocationResponse]


class StrategyPerformanceResponse(BaseModel):
    strategy: str
    time_in_range: Decimal
    liquidity_efficiency: Decimal
    avg_utilization_when_active: Decimal
    peak_utilization: Decimal
    utilization_stability: Decimal
    fees_usd: Decimal
    active_snapshots: int
    total_snapshots: int


class BinFeesResponse(BaseModel):
    bin_id: int
    fees_usd: Decimal


class DailyBinActivityResponse(BaseModel):
    date: str
    bin_id: int
    snapshot_count: int
    proportion: Decimal
    avg_liquidity_usd: Decimal
    volume_usd: Decimal
    fees_usd: Decimal


class EfficiencyPointResponse(BaseModel):
    total_snapshots: int
    active_snapshots: int
    time_in_range: Decimal
    overall_efficiency: Decimal
    avg_utilization_when_active: Decimal


class BacktestResponse(BaseModel):
    pool_address: str
    period: str
    days: int
    start_timestamp: int
    end_timestamp: int
    snapshot_count: int
    strategies: list[StrategyPerformanceResponse]
    allocations: list[StrategyAllocationResponse]
    bin_wise_fees: list[BinFeesResponse]
    daily_bins: list[DailyBinActivityResponse]
    missing_market_days: list[str]
    timeline: dict[str, list[EfficiencyPointResponse]] | None = None
