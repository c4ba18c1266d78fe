from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
import re

from app.domain.entities.backtest import BacktestParams, BacktestResult, StrategyPerformance
from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.entities.snapshot import PoolSnapshot
from app.domain.entities.strategy import StrategyAllocation, StrategySet
from app.domain.exceptions import InvalidParameterError
from app.domain.services.activity import activity_points
from app.domain.services.allocation import allocate_strategies
from app.domain.services.daily_volume import MS_PER_DAY, attribute_daily_volume
from app.domain.services.efficiency import calculate_efficiency, efficiency_timeline
from app.domain.services.fee_distribution import distribute_fees


PERIOD_DAYS = {
    "1d": 1,
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
}
PERIOD_PATTERN = re.compile(r"^\s*(\d+)\s*[dD]?\s*$")


def parse_period(period: str | int) -> int:
    if isinstance(period, int):
        days = period
    else:
        key = period.strip().lower()
        if key in PERIOD_DAYS:
            return PERIOD_DAYS[key]
        match = PERIOD_PATTERN.match(key)
        if not match:
            raise InvalidParameterError("period must be one of 1d, 7d, 30d, 90d, 1y or a day count like 14d.")
        days = int(match.group(1))
    if days <= 0:
        raise InvalidParameterError("period must be at least one day.")
    return days


def period_window(*, latest_timestamp: int, days: int) -> tuple[int, int]:
    return latest_timestamp - days * MS_PER_DAY, latest_timestamp


def filter_snapshots_for_period(snapshots: Sequence[PoolSnapshot], *, days: int) -> list[PoolSnapshot]:
    """Janela ancorada no snapshot mais recente, limites inclusivos."""
    if not snapshots:
        return []
    start, end = period_window(latest_timestamp=max(row.timestamp for row in snapshots), days=days)
    return sorted(
        (row for row in snapshots if start <= row.timestamp <= end),
        key=lambda row: row.timestamp,
    )


def candle_window(*, start_ms: int, end_ms: int) -> tuple[int, int]:
    # candles open at the UTC day start, so the first day needs its midnight included
    return start_ms - (start_ms % MS_PER_DAY), end_ms


def _empty_strategies(total_liquidity_usd: Decimal) -> StrategySet:
    return StrategySet(
        spot=StrategyAllocation(strategy="spot", total_liquidity_usd=total_liquidity_usd, bins=()),
        curve=StrategyAllocation(strategy="curve", total_liquidity_usd=total_liquidity_usd, bins=()),
        bid_ask=StrategyAllocation(strategy="bid_ask", total_liquidity_usd=total_liquidity_usd, bins=()),
    )


def run_backtest(
    *,
    snapshots: Sequence[PoolSnapshot],
    candles: Sequence[OhlcvCandle],
    params: BacktestParams,
    include_timeline: bool = False,
) -> BacktestResult:
    """Aloca uma vez no primeiro snapshot e avalia a posicao estatica na janela inteira."""
    if params.total_liquidity_usd <= 0:
        raise InvalidParameterError("total_liquidity_usd must be positive.")

    ordered = sorted(snapshots, key=lambda row: row.timestamp)
    if not ordered:
        strategies = _empty_strategies(params.total_liquidity_usd)
    else:
        strategies = allocate_strategies(
            total_liquidity_usd=params.total_liquidity_usd,
            snapshot=ordered[0],
            range_percent=params.bin_range_percent,
            concentration=params.concentration,
            center_epsilon=params.bid_ask_center_epsilon,
        )

    attribution = attribute_daily_volume(snapshots=ordered, candles=candles)
    fees = distribute_fees(
        attribution=attribution,
        strategies=strategies,
        base_fee_rate=params.base_fee_rate,
    )

    performance = {}
    timeline = {}
    for name, allocation in strategies.items():
        points = activity_points(allocation=allocation, snapshots=ordered)
        stats = calculate_efficiency(points)
        performance[name] = StrategyPerformance(
            strategy=name,
            time_in_range=stats.time_in_range,
            liquidity_efficiency=stats.overall_efficiency,
            avg_utilization_when_active=stats.avg_utilization_when_active,
            peak_utilization=stats.peak_utilization,
            utilization_stability=stats.utilization_stability,
            fees_usd=fees.strategy_wise_fees.get(name, Decimal("0")),
            active_snapshots=stats.active_snapshots,
            total_snapshots=stats.total_snapshots,
        )
        if include_timeline:
            timeline[name] = tuple(efficiency_timeline(points))

    return BacktestResult(
        params=params,
        start_timestamp=ordered[0].timestamp if ordered else 0,
        end_timestamp=ordered[-1].timestamp if ordered else 0,
        snapshot_count=len(ordered),
        allocations=strategies,
        performance=performance,
        bin_wise_fees=fees.bin_wise_fees,
        daily_bins=fees.daily_bins,
        missing_market_days=fees.missing_market_days,
        timeline=timeline,
    )
