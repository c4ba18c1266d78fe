from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from functools import cached_property
from typing import Literal


StrategyName = Literal["spot", "curve", "bid_ask"]
Concentration = Literal["low", "medium", "high"]

STRATEGY_NAMES: tuple[StrategyName, ...] = ("spot", "curve", "bid_ask")
CONCENTRATIONS: tuple[Concentration, ...] = ("low", "medium", "high")


@dataclass(frozen=True)
class BinAllocation:
    bin_id: int
    liquidity_x: Decimal
    liquidity_y: Decimal
    total_liquidity_usd: Decimal
    weight: Decimal


@dataclass(frozen=True)
class StrategyAllocation:
    strategy: StrategyName
    total_liquidity_usd: Decimal
    bins: tuple[BinAllocation, ...]

    @cached_property
    def bins_by_id(self) -> dict[int, BinAllocation]:
        return {row.bin_id: row for row in self.bins}

    @cached_property
    def bin_ids(self) -> frozenset[int]:
        return frozenset(self.bins_by_id)

    def liquidity_at(self, bin_id: int) -> Decimal:
        row = self.bins_by_id.get(bin_id)
        return row.total_liquidity_usd if row is not None else Decimal("0")


@dataclass(frozen=True)
class StrategySet:
    spot: StrategyAllocation
    curve: StrategyAllocation
    bid_ask: StrategyAllocation

    def items(self) -> list[tuple[StrategyName, StrategyAllocation]]:
        return [("spot", self.spot), ("curve", self.curve), ("bid_ask", self.bid_ask)]
