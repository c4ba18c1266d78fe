from __future__ import annotations

import logging
from decimal import Decimal
from time import perf_counter

from app.application.dto.sweep import RunSweepInput, RunSweepOutput
from app.application.ports.ohlcv_port import OhlcvPort
from app.application.ports.snapshot_port import SnapshotPort
from app.application.use_cases.backtest_common import (
    load_window_snapshots,
    normalize_concentration,
    resolve_pool_address,
)
from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.entities.sweep import SweepConfig, SweepRow
from app.domain.exceptions import InvalidParameterError, MarketDataUnavailableError
from app.domain.services.backtest import candle_window, period_window
from app.domain.services.fee_distribution import DEFAULT_BASE_FEE_RATE
from app.domain.services.sweep import StrategySweep, build_sweep_configs, run_sweep_row
from app.domain.services.weights import DEFAULT_BID_ASK_CENTER_EPSILON


logger = logging.getLogger(__name__)


class RunSweepUseCase:
    def __init__(
        self,
        *,
        snapshot_port: SnapshotPort,
        ohlcv_port: OhlcvPort,
        base_fee_rate: Decimal = DEFAULT_BASE_FEE_RATE,
        bid_ask_center_epsilon: Decimal = DEFAULT_BID_ASK_CENTER_EPSILON,
        max_workers: int = 1,
        default_pool_address: str = "",
    ):
        self._snapshot_port = snapshot_port
        self._ohlcv_port = ohlcv_port
        self._base_fee_rate = base_fee_rate
        self._bid_ask_center_epsilon = bid_ask_center_epsilon
        self._max_workers = max(1, max_workers)
        self._default_pool_address = default_pool_address

    def execute(self, command: RunSweepInput) -> RunSweepOutput:
        pool_address = resolve_pool_address(command.pool_address, self._default_pool_address)
        concentration = normalize_concentration(command.concentration)
        if any(level <= 0 for level in command.liquidity_levels):
            raise InvalidParameterError("liquidity_levels must all be positive.")
        if any(bin_range <= 0 for bin_range in command.bin_ranges):
            raise InvalidParameterError("bin_ranges must all be positive.")
        configs = build_sweep_configs(
            liquidity_levels=command.liquidity_levels,
            bin_ranges=command.bin_ranges,
            periods=command.periods,
        )
        logger.info(
            "run_sweep: start pool=%s configs=%s periods=%s concentration=%s",
            pool_address,
            len(configs),
            list(command.periods),
            concentration,
        )
        start = perf_counter()

        max_days = max(config.days for config in configs)
        snapshots, _, latest = load_window_snapshots(
            snapshot_port=self._snapshot_port,
            pool_address=pool_address,
            days=max_days,
        )
        candles_by_days = self._load_candles(
            latest_timestamp=latest,
            day_counts=sorted({config.days for config in configs}),
        )

        def run_row(config: SweepConfig) -> SweepRow:
            candles = candles_by_days[config.days]
            if isinstance(candles, MarketDataUnavailableError):
                raise candles
            return run_sweep_row(
                config,
                snapshots=snapshots,
                candles=candles,
                concentration=concentration,
                base_fee_rate=self._base_fee_rate,
                bid_ask_center_epsilon=self._bid_ask_center_epsilon,
            )

        result = StrategySweep(configs=configs, run_row=run_row, max_workers=self._max_workers).run()

        elapsed_ms = (perf_counter() - start) * 1000
        logger.info(
            "run_sweep: success pool=%s rows=%s failures=%s elapsed_ms=%.2f",
            pool_address,
            len(result.rows),
            len(result.failures),
            elapsed_ms,
        )
        return RunSweepOutput(pool_address=pool_address, result=result)

    def _load_candles(
        self,
        *,
        latest_timestamp: int,
        day_counts: list[int],
    ) -> dict[int, list[OhlcvCandle] | MarketDataUnavailableError]:
        loaded: dict[int, list[OhlcvCandle] | MarketDataUnavailableError] = {}
        for days in day_counts:
            period_start_ms, period_end_ms = period_window(latest_timestamp=latest_timestamp, days=days)
            start_ms, end_ms = candle_window(start_ms=period_start_ms, end_ms=period_end_ms)
            try:
                loaded[days] = self._ohlcv_port.get_daily_candles(start_ms=start_ms, end_ms=end_ms)
            except MarketDataUnavailableError as exc:
                logger.warning(
                    "run_sweep: ohlcv_unavailable days=%s error=%s",
                    days,
                    exc,
                )
                loaded[days] = exc
        return loaded
