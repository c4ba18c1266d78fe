from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from app.domain.entities.backtest import StrategyPerformance
from app.domain.entities.strategy import StrategyName


SweepStatus = Literal["idle", "running", "done"]


@dataclass(frozen=True)
class SweepConfig:
    liquidity_usd: Decimal
    bin_range_percent: Decimal
    period: str
    days: int

    @property
    def label(self) -> str:
        return f"${self.liquidity_usd:,.0f}, {self.bin_range_percent}% range, {self.period}"


@dataclass(frozen=True)
class SweepRow:
    config: SweepConfig
    total_bins: int
    snapshot_count: int
    performance: dict[StrategyName, StrategyPerformance]
    missing_market_days: tuple[str, ...]


@dataclass(frozen=True)
class SweepBestPerformer:
    strategy: StrategyName
    config: SweepConfig
    value: Decimal


@dataclass(frozen=True)
class SweepFailure:
    config: SweepConfig
    reason: str


@dataclass(frozen=True)
class SweepResult:
    rows: tuple[SweepRow, ...]
    failures: tuple[SweepFailure, ...]
    best_efficiency: SweepBestPerformer | None
    best_fees: SweepBestPerformer | None
