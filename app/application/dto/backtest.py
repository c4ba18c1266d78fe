from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from app.domain.entities.backtest import BacktestResult


@dataclass(frozen=True)
class RunBacktestInput:
    pool_address: str | None
    total_liquidity_usd: Decimal
    bin_range_percent: Decimal
    period: str
    concentration: str = "medium"
    include_timeline: bool = False


@dataclass(frozen=True)
class RunBacktestOutput:
    pool_address: str
    period: str
    days: int
    result: BacktestResult
