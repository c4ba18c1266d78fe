from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from app.domain.entities.pool_analytics import PoolAnalytics
from app.domain.entities.snapshot import PoolSnapshot
from app.domain.services.daily_volume import bin_liquidity_usd


ZERO = Decimal("0")


def population_std(values: Sequence[Decimal]) -> Decimal:
    if len(values) < 2:
        return ZERO
    count = Decimal(len(values))
    mean = sum(values, ZERO) / count
    variance = sum(((value - mean) ** 2 for value in values), ZERO) / count
    return variance.sqrt() if variance > 0 else ZERO


def count_active_bin_changes(snapshots: Sequence[PoolSnapshot]) -> int:
    return sum(
        1
        for previous, current in zip(snapshots, snapshots[1:])
        if previous.active_bin_id != current.active_bin_id
    )


def snapshot_liquidity_usd(snapshot: PoolSnapshot) -> Decimal:
    return sum(
        (
            bin_liquidity_usd(
                row,
                decimals_x=snapshot.reserve_x_decimal,
                decimals_y=snapshot.reserve_y_decimal,
            )
            for row in snapshot.bin_data
        ),
        ZERO,
    )


def summarize_pool(*, pool_address: str, snapshots: Sequence[PoolSnapshot]) -> PoolAnalytics:
    ordered = sorted(snapshots, key=lambda row: row.timestamp)
    if not ordered:
        return PoolAnalytics(
            pool_address=pool_address,
            pool_name="",
            start_timestamp=0,
            end_timestamp=0,
            total_snapshots=0,
            price_min=ZERO,
            price_max=ZERO,
            price_avg=ZERO,
            price_volatility=ZERO,
            active_bin_changes=0,
            avg_liquidity_usd=ZERO,
        )

    prices = [row.current_price for row in ordered]
    count = Decimal(len(ordered))
    return PoolAnalytics(
        pool_address=pool_address,
        pool_name=ordered[-1].pool_name,
        start_timestamp=ordered[0].timestamp,
        end_timestamp=ordered[-1].timestamp,
        total_snapshots=len(ordered),
        price_min=min(prices),
        price_max=max(prices),
        price_avg=sum(prices, ZERO) / count,
        price_volatility=population_std(prices),
        active_bin_changes=count_active_bin_changes(ordered),
        avg_liquidity_usd=sum((snapshot_liquidity_usd(row) for row in ordered), ZERO) / count,
    )
