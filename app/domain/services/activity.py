from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from app.domain.entities.backtest import ActivityPoint
from app.domain.entities.snapshot import PoolSnapshot
from app.domain.entities.strategy import StrategyAllocation


def track_activity(
    *,
    allocation: StrategyAllocation,
    snapshots: Sequence[PoolSnapshot],
) -> list[bool]:
    bin_ids = allocation.bin_ids
    return [snapshot.active_bin_id in bin_ids for snapshot in snapshots]


def instantaneous_utilization(*, allocation: StrategyAllocation, active_bin_id: int) -> Decimal:
    if allocation.total_liquidity_usd <= 0:
        return Decimal("0")
    return allocation.liquidity_at(active_bin_id) / allocation.total_liquidity_usd


def activity_points(
    *,
    allocation: StrategyAllocation,
    snapshots: Sequence[PoolSnapshot],
) -> list[ActivityPoint]:
    flags = track_activity(allocation=allocation, snapshots=snapshots)
    points: list[ActivityPoint] = []
    for snapshot, in_range in zip(snapshots, flags):
        utilization = (
            instantaneous_utilization(allocation=allocation, active_bin_id=snapshot.active_bin_id)
            if in_range
            else Decimal("0")
        )
        points.append(
            ActivityPoint(
                timestamp=snapshot.timestamp,
                active_bin_id=snapshot.active_bin_id,
                in_range=in_range,
                utilization=utilization,
            )
        )
    return points
