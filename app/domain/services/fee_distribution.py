from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal
from functools import reduce
from typing import TypeVar

from app.domain.entities.backtest import (
    DailyBinActivity,
    DailyVolume,
    FeeDistribution,
    VolumeAttribution,
)
from app.domain.entities.strategy import StrategyName, StrategySet
from app.domain.exceptions import InvalidParameterError


DEFAULT_BASE_FEE_RATE = Decimal("0.01")
BPS_DENOMINATOR = Decimal("10000")
ZERO = Decimal("0")
ONE = Decimal("1")

K = TypeVar("K")


def lp_share(protocol_fee_bps: int | Decimal) -> Decimal:
    share = ONE - Decimal(protocol_fee_bps) / BPS_DENOMINATOR
    return min(max(share, ZERO), ONE)


def bin_fees_usd(*, volume_usd: Decimal, base_fee_rate: Decimal, protocol_fee_bps: int) -> Decimal:
    return volume_usd * base_fee_rate * lp_share(protocol_fee_bps)


def strategy_share_of_bin(*, allocated_usd: Decimal, avg_liquidity_usd: Decimal) -> tuple[Decimal, bool]:
    """Retorna (share, clamped). Share acima de 1 e ruido de estimativa e vira 1."""
    if allocated_usd <= 0:
        return ZERO, False
    if avg_liquidity_usd <= 0:
        return ONE, True
    share = allocated_usd / avg_liquidity_usd
    if share > ONE:
        return ONE, True
    return share, False


def _add(mapping: Mapping[K, Decimal], key: K, amount: Decimal) -> dict[K, Decimal]:
    merged = dict(mapping)
    merged[key] = merged.get(key, ZERO) + amount
    return merged


@dataclass(frozen=True)
class _FeeState:
    bin_wise_fees: dict[int, Decimal]
    strategy_wise_fees: dict[StrategyName, Decimal]
    daily_bins: tuple[DailyBinActivity, ...]
    clamped_shares: int


def _fold_day(
    state: _FeeState,
    day: DailyVolume,
    *,
    strategies: StrategySet,
    base_fee_rate: Decimal,
) -> _FeeState:
    bin_wise = state.bin_wise_fees
    strategy_wise = state.strategy_wise_fees
    clamped = state.clamped_shares
    priced_bins: list[DailyBinActivity] = []

    for row in day.bins:
        fees = bin_fees_usd(
            volume_usd=row.volume_usd,
            base_fee_rate=base_fee_rate,
            protocol_fee_bps=day.protocol_fee_bps,
        )
        priced_bins.append(replace(row, fees_usd=fees))
        bin_wise = _add(bin_wise, row.bin_id, fees)

        for name, allocation in strategies.items():
            if row.bin_id not in allocation.bin_ids:
                continue
            share, was_clamped = strategy_share_of_bin(
                allocated_usd=allocation.liquidity_at(row.bin_id),
                avg_liquidity_usd=row.avg_liquidity_usd,
            )
            clamped += int(was_clamped)
            strategy_wise = _add(strategy_wise, name, fees * share)

    return _FeeState(
        bin_wise_fees=bin_wise,
        strategy_wise_fees=strategy_wise,
        daily_bins=state.daily_bins + tuple(priced_bins),
        clamped_shares=clamped,
    )


def distribute_fees(
    *,
    attribution: VolumeAttribution,
    strategies: StrategySet,
    base_fee_rate: Decimal = DEFAULT_BASE_FEE_RATE,
) -> FeeDistribution:
    if base_fee_rate < 0:
        raise InvalidParameterError("base_fee_rate must be >= 0.")

    initial = _FeeState(
        bin_wise_fees={},
        strategy_wise_fees={name: ZERO for name, _ in strategies.items()},
        daily_bins=(),
        clamped_shares=0,
    )
    final = reduce(
        lambda state, day: _fold_day(
            state,
            day,
            strategies=strategies,
            base_fee_rate=base_fee_rate,
        ),
        attribution.days,
        initial,
    )
    return FeeDistribution(
        bin_wise_fees=final.bin_wise_fees,
        strategy_wise_fees=final.strategy_wise_fees,
        daily_bins=final.daily_bins,
        missing_market_days=attribution.missing_market_days,
        clamped_shares=final.clamped_shares,
    )
