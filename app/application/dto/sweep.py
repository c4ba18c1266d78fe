from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from app.domain.entities.sweep import SweepResult
from app.domain.services.sweep import DEFAULT_BIN_RANGES, DEFAULT_LIQUIDITY_LEVELS, DEFAULT_PERIODS


@dataclass(frozen=True)
class RunSweepInput:
    pool_address: str | None
    liquidity_levels: tuple[Decimal, ...] = field(default=DEFAULT_LIQUIDITY_LEVELS)
    bin_ranges: tuple[Decimal, ...] = field(default=DEFAULT_BIN_RANGES)
    periods: tuple[str, ...] = field(default=DEFAULT_PERIODS)
    concentration: str = "medium"


@dataclass(frozen=True)
class RunSweepOutput:
    pool_address: str
    result: SweepResult
