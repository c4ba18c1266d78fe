from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
import logging

from app.domain.entities.backtest import BacktestParams
from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.entities.snapshot import PoolSnapshot
from app.domain.entities.strategy import STRATEGY_NAMES
from app.domain.entities.sweep import (
    SweepBestPerformer,
    SweepConfig,
    SweepFailure,
    SweepResult,
    SweepRow,
    SweepStatus,
)
from app.domain.exceptions import BacktestDataNotFoundError, InvalidParameterError
from app.domain.services.backtest import filter_snapshots_for_period, parse_period, run_backtest


DEFAULT_LIQUIDITY_LEVELS = (Decimal("1000"), Decimal("2000"), Decimal("5000"), Decimal("10000"))
DEFAULT_BIN_RANGES = (Decimal("1"), Decimal("2"), Decimal("5"), Decimal("10"))
DEFAULT_PERIODS = ("7d", "30d")
logger = logging.getLogger(__name__)

RowRunner = Callable[[SweepConfig], SweepRow]


def build_sweep_configs(
    *,
    liquidity_levels: Sequence[Decimal] = DEFAULT_LIQUIDITY_LEVELS,
    bin_ranges: Sequence[Decimal] = DEFAULT_BIN_RANGES,
    periods: Sequence[str] = DEFAULT_PERIODS,
) -> list[SweepConfig]:
    if not liquidity_levels or not bin_ranges or not periods:
        raise InvalidParameterError("liquidity_levels, bin_ranges and periods must not be empty.")
    configs: list[SweepConfig] = []
    for period in periods:
        days = parse_period(period)
        for liquidity in liquidity_levels:
            for bin_range in bin_ranges:
                configs.append(
                    SweepConfig(
                        liquidity_usd=Decimal(liquidity),
                        bin_range_percent=Decimal(bin_range),
                        period=period,
                        days=days,
                    )
                )
    return configs


def run_sweep_row(
    config: SweepConfig,
    *,
    snapshots: Sequence[PoolSnapshot],
    candles: Sequence[OhlcvCandle],
    concentration: str = "medium",
    base_fee_rate: Decimal = Decimal("0.01"),
    bid_ask_center_epsilon: Decimal = Decimal("0.001"),
) -> SweepRow:
    window = filter_snapshots_for_period(snapshots, days=config.days)
    if not window:
        raise BacktestDataNotFoundError(
            f"No snapshots found for {config.period}.",
            code="period_without_snapshots",
            context={"period": config.period},
        )
    result = run_backtest(
        snapshots=window,
        candles=candles,
        params=BacktestParams(
            total_liquidity_usd=config.liquidity_usd,
            bin_range_percent=config.bin_range_percent,
            concentration=concentration,
            base_fee_rate=base_fee_rate,
            bid_ask_center_epsilon=bid_ask_center_epsilon,
        ),
    )
    return SweepRow(
        config=config,
        total_bins=len(result.allocations.spot.bins),
        snapshot_count=result.snapshot_count,
        performance=result.performance,
        missing_market_days=result.missing_market_days,
    )


def find_best_performers(
    rows: Sequence[SweepRow],
) -> tuple[SweepBestPerformer | None, SweepBestPerformer | None]:
    best_efficiency: SweepBestPerformer | None = None
    best_fees: SweepBestPerformer | None = None
    for row in rows:
        for name in STRATEGY_NAMES:
            performance = row.performance.get(name)
            if performance is None:
                continue
            if best_efficiency is None or performance.liquidity_efficiency > best_efficiency.value:
                best_efficiency = SweepBestPerformer(
                    strategy=name,
                    config=row.config,
                    value=performance.liquidity_efficiency,
                )
            if best_fees is None or performance.fees_usd > best_fees.value:
                best_fees = SweepBestPerformer(strategy=name, config=row.config, value=performance.fees_usd)
    return best_efficiency, best_fees


class StrategySweep:
    """Executa cada configuracao de forma independente; linhas com erro sao descartadas."""

    def __init__(self, *, configs: Sequence[SweepConfig], run_row: RowRunner, max_workers: int = 1):
        self._configs = list(configs)
        self._run_row = run_row
        self._max_workers = max(1, max_workers)
        self._status: SweepStatus = "idle"

    @property
    def status(self) -> SweepStatus:
        return self._status

    def run(self) -> SweepResult:
        if self._status != "idle":
            raise RuntimeError("A sweep can only be run once.")
        self._status = "running"
        logger.info(
            "strategy_sweep: start configs=%s max_workers=%s",
            len(self._configs),
            self._max_workers,
        )

        if self._max_workers == 1:
            outcomes = [self._safe_run(config) for config in self._configs]
        else:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                outcomes = list(executor.map(self._safe_run, self._configs))

        rows = tuple(outcome for outcome in outcomes if isinstance(outcome, SweepRow))
        failures = tuple(outcome for outcome in outcomes if isinstance(outcome, SweepFailure))
        best_efficiency, best_fees = find_best_performers(rows)
        self._status = "done"
        logger.info(
            "strategy_sweep: done rows=%s failures=%s",
            len(rows),
            len(failures),
        )
        return SweepResult(
            rows=rows,
            failures=failures,
            best_efficiency=best_efficiency,
            best_fees=best_fees,
        )

    def _safe_run(self, config: SweepConfig) -> SweepRow | SweepFailure:
        try:
            return self._run_row(config)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "strategy_sweep: row_dropped config=%s error=%s",
                config.label,
                exc,
            )
            return SweepFailure(config=config, reason=str(exc))
