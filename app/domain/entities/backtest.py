from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from app.domain.entities.strategy import StrategyName, StrategySet


@dataclass(frozen=True)
class ActivityPoint:
    timestamp: int
    active_bin_id: int
    in_range: bool
    utilization: Decimal


@dataclass(frozen=True)
class EfficiencyStats:
    total_snapshots: int
    active_snapshots: int
    time_in_range: Decimal
    avg_utilization_when_active: Decimal
    overall_efficiency: Decimal
    peak_utilization: Decimal
    utilization_stability: Decimal


@dataclass(frozen=True)
class DailyBinActivity:
    date: str
    bin_id: int
    snapshot_count: int
    proportion: Decimal
    avg_liquidity_usd: Decimal
    volume_usd: Decimal
    fees_usd: Decimal = Decimal("0")


@dataclass(frozen=True)
class DailyVolume:
    date: str
    snapshot_count: int
    protocol_fee_bps: int
    day_volume_usd: Decimal
    bins: tuple[DailyBinActivity, ...]


@dataclass(frozen=True)
class VolumeAttribution:
    days: tuple[DailyVolume, ...]
    missing_market_days: tuple[str, ...]


@dataclass(frozen=True)
class FeeDistribution:
    bin_wise_fees: dict[int, Decimal]
    strategy_wise_fees: dict[StrategyName, Decimal]
    daily_bins: tuple[DailyBinActivity, ...]
    missing_market_days: tuple[str, ...]
    clamped_shares: int = 0


@dataclass(frozen=True)
class StrategyPerformance:
    strategy: StrategyName
    time_in_range: Decimal
    liquidity_efficiency: Decimal
    avg_utilization_when_active: Decimal
    peak_utilization: Decimal
    utilization_stability: Decimal
    fees_usd: Decimal
    active_snapshots: int
    total_snapshots: int


@dataclass(frozen=True)
class BacktestParams:
    total_liquidity_usd: Decimal
    bin_range_percent: Decimal
    concentration: str = "medium"
    base_fee_rate: Decimal = Decimal("0.01")
    bid_ask_center_epsilon: Decimal = Decimal("0.001")


@dataclass(frozen=True)
class BacktestResult:
    params: BacktestParams
    start_timestamp: int
    end_timestamp: int
    snapshot_count: int
    allocations: StrategySet
    performance: dict[StrategyName, StrategyPerformance]
    bin_wise_fees: dict[int, Decimal]
    daily_bins: tuple[DailyBinActivity, ...]
    missing_market_days: tuple[str, ...]
    timeline: dict[StrategyName, tuple[EfficiencyStats, ...]] = field(default_factory=dict)

    @property
    def time_in_range(self) -> dict[StrategyName, Decimal]:
        return {name: row.time_in_range for name, row in self.performance.items()}

    @property
    def liquidity_efficiency(self) -> dict[StrategyName, Decimal]:
        return {name: row.liquidity_efficiency for name, row in self.performance.items()}

    @property
    def strategy_wise_fees(self) -> dict[StrategyName, Decimal]:
        return {name: row.fees_usd for name, row in self.performance.items()}
