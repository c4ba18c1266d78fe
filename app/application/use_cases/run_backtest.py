from __future__ import annotations

import logging
from decimal import Decimal

from app.application.dto.backtest import RunBacktestInput, RunBacktestOutput
from app.application.ports.ohlcv_port import OhlcvPort
from app.application.ports.snapshot_port import SnapshotPort
from app.application.use_cases.backtest_common import (
    load_window_snapshots,
    normalize_concentration,
    resolve_pool_address,
)
from app.domain.entities.backtest import BacktestParams
from app.domain.exceptions import InvalidParameterError
from app.domain.services.backtest import candle_window, parse_period, run_backtest
from app.domain.services.fee_distribution import DEFAULT_BASE_FEE_RATE
from app.domain.services.weights import DEFAULT_BID_ASK_CENTER_EPSILON


logger = logging.getLogger(__name__)


class RunBacktestUseCase:
    def __init__(
        self,
        *,
        snapshot_port: SnapshotPort,
        ohlcv_port: OhlcvPort,
        base_fee_rate: Decimal = DEFAULT_BASE_FEE_RATE,
        bid_ask_center_epsilon: Decimal = DEFAULT_BID_ASK_CENTER_EPSILON,
        default_pool_address: str = "",
    ):
        self._snapshot_port = snapshot_port
        self._ohlcv_port = ohlcv_port
        self._base_fee_rate = base_fee_rate
        self._bid_ask_center_epsilon = bid_ask_center_epsilon
        self._default_pool_address = default_pool_address

    def execute(self, command: RunBacktestInput) -> RunBacktestOutput:
        logger.info(
            "run_backtest: start pool=%s liquidity=%s range_pct=%s period=%s concentration=%s",
            command.pool_address,
            command.total_liquidity_usd,
            command.bin_range_percent,
            command.period,
            command.concentration,
        )
        pool_address = resolve_pool_address(command.pool_address, self._default_pool_address)
        if command.total_liquidity_usd <= 0:
            raise InvalidParameterError("total_liquidity_usd must be positive.")
        if command.bin_range_percent <= 0:
            raise InvalidParameterError("bin_range_percent must be positive.")
        concentration = normalize_concentration(command.concentration)
        days = parse_period(command.period)

        snapshots, start_ms, end_ms = load_window_snapshots(
            snapshot_port=self._snapshot_port,
            pool_address=pool_address,
            days=days,
        )
        candle_start_ms, candle_end_ms = candle_window(start_ms=start_ms, end_ms=end_ms)
        candles = self._ohlcv_port.get_daily_candles(start_ms=candle_start_ms, end_ms=candle_end_ms)

        result = run_backtest(
            snapshots=snapshots,
            candles=candles,
            params=BacktestParams(
                total_liquidity_usd=command.total_liquidity_usd,
                bin_range_percent=command.bin_range_percent,
                concentration=concentration,
                base_fee_rate=self._base_fee_rate,
                bid_ask_center_epsilon=self._bid_ask_center_epsilon,
            ),
            include_timeline=command.include_timeline,
        )

        logger.info(
            "run_backtest: success pool=%s snapshots=%s candles=%s missing_days=%s fees_spot=%s fees_curve=%s fees_bid_ask=%s",
            pool_address,
            result.snapshot_count,
            len(candles),
            len(result.missing_market_days),
            result.performance["spot"].fees_usd,
            result.performance["curve"].fees_usd,
            result.performance["bid_ask"].fees_usd,
        )
        return RunBacktestOutput(
            pool_address=pool_address,
            period=command.period,
            days=days,
            result=result,
        )
