from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from app.domain.entities.snapshot import PoolSnapshot
from app.domain.entities.strategy import (
    BinAllocation,
    Concentration,
    StrategyAllocation,
    StrategyName,
    StrategySet,
)
from app.domain.exceptions import InvalidParameterError
from app.domain.services.bin_range import resolve_bin_ids
from app.domain.services.weights import DEFAULT_BID_ASK_CENTER_EPSILON, strategy_weights


@dataclass(frozen=True)
class AllocationAmounts:
    amount_x: Decimal
    amount_y: Decimal


def split_bin_liquidity(
    *,
    bin_id: int,
    active_bin_id: int,
    liquidity_usd: Decimal,
    current_price: Decimal,
) -> AllocationAmounts:
    """Divide o valor em USD de um bin entre token base (x) e token de cotacao (y).

    Bin ativo: 50/50 em valor. Bins abaixo do ativo guardam apenas o token de
    cotacao; bins acima guardam apenas o token base.
    """
    if current_price <= 0:
        raise InvalidParameterError("current_price must be positive.")
    if bin_id == active_bin_id:
        half = liquidity_usd / Decimal("2")
        return AllocationAmounts(amount_x=half / current_price, amount_y=half)
    if bin_id < active_bin_id:
        return AllocationAmounts(amount_x=Decimal("0"), amount_y=liquidity_usd)
    return AllocationAmounts(amount_x=liquidity_usd / current_price, amount_y=Decimal("0"))


def allocate_strategy(
    *,
    strategy: StrategyName,
    total_liquidity_usd: Decimal,
    snapshot: PoolSnapshot,
    range_percent: Decimal,
    concentration: Concentration = "medium",
    center_epsilon: Decimal = DEFAULT_BID_ASK_CENTER_EPSILON,
) -> StrategyAllocation:
    if total_liquidity_usd <= 0:
        raise InvalidParameterError("total_liquidity_usd must be positive.")
    if snapshot.current_price <= 0:
        raise InvalidParameterError("current_price must be positive.")

    bin_ids = resolve_bin_ids(
        active_bin_id=snapshot.active_bin_id,
        range_percent=range_percent,
        bin_step=snapshot.bin_step,
    )
    weights = strategy_weights(
        strategy,
        len(bin_ids),
        concentration=concentration,
        center_epsilon=center_epsilon,
    )

    rows: list[BinAllocation] = []
    for bin_id, weight in zip(bin_ids, weights):
        bin_liquidity_usd = total_liquidity_usd * weight
        amounts = split_bin_liquidity(
            bin_id=bin_id,
            active_bin_id=snapshot.active_bin_id,
            liquidity_usd=bin_liquidity_usd,
            current_price=snapshot.current_price,
        )
        rows.append(
            BinAllocation(
                bin_id=bin_id,
                liquidity_x=amounts.amount_x,
                liquidity_y=amounts.amount_y,
                total_liquidity_usd=bin_liquidity_usd,
                weight=weight,
            )
        )
    return StrategyAllocation(
        strategy=strategy,
        total_liquidity_usd=total_liquidity_usd,
        bins=tuple(rows),
    )


def allocate_strategies(
    *,
    total_liquidity_usd: Decimal,
    snapshot: PoolSnapshot,
    range_percent: Decimal,
    concentration: Concentration = "medium",
    center_epsilon: Decimal = DEFAULT_BID_ASK_CENTER_EPSILON,
) -> StrategySet:
    common = {
        "total_liquidity_usd": total_liquidity_usd,
        "snapshot": snapshot,
        "range_percent": range_percent,
        "concentration": concentration,
        "center_epsilon": center_epsilon,
    }
    return StrategySet(
        spot=allocate_strategy(strategy="spot", **common),
        curve=allocate_strategy(strategy="curve", **common),
        bid_ask=allocate_strategy(strategy="bid_ask", **common),
    )


def total_allocated_usd(allocation: StrategyAllocation) -> Decimal:
    return sum((row.total_liquidity_usd for row in allocation.bins), Decimal("0"))


def total_base_amount(allocation: StrategyAllocation) -> Decimal:
    return sum((row.liquidity_x for row in allocation.bins), Decimal("0"))


def total_quote_amount(allocation: StrategyAllocation) -> Decimal:
    return sum((row.liquidity_y for row in allocation.bins), Decimal("0"))
