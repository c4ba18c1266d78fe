from __future__ import annotations

from decimal import Decimal
import unittest

from app.application.dto.backtest import RunBacktestInput
from app.application.use_cases.run_backtest import RunBacktestUseCase
from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.entities.snapshot import BinSnapshot, PoolSnapshot
from app.domain.exceptions import (
    BacktestDataNotFoundError,
    InvalidParameterError,
    MarketDataUnavailableError,
)
from app.domain.services.daily_volume import MS_PER_DAY


DAY0 = 1_699_920_000_000
HOUR = 3_600_000


def _snapshot(timestamp: int, active_bin_id: int) -> PoolSnapshot:
    return PoolSnapshot(
        timestamp=timestamp,
        active_bin_id=active_bin_id,
        bin_step=100,
        protocol_fee=2000,
        current_price=Decimal("0.41"),
        reserve_x_decimal=6,
        reserve_y_decimal=6,
        bin_data=(BinSnapshot(bin_id=100, liquidity_x=0, liquidity_y=10_000_000_000, price=Decimal("0.41")),),
        pool_address="pool-1",
    )


class FakeSnapshotPort:
    def __init__(self, snapshots: list[PoolSnapshot]):
        self.snapshots = snapshots
        self.last_window: tuple[int, int] | None = None

    def get_latest_timestamp(self, *, pool_address: str) -> int | None:
        rows = [row.timestamp for row in self.snapshots if row.pool_address == pool_address]
        return max(rows) if rows else None

    def list_snapshots(self, *, pool_address: str, start_ms: int, end_ms: int) -> list[PoolSnapshot]:
        self.last_window = (start_ms, end_ms)
        return [
            row
            for row in self.snapshots
            if row.pool_address == pool_address and start_ms <= row.timestamp <= end_ms
        ]


class FakeOhlcvPort:
    def __init__(self, candles: list[OhlcvCandle] | None = None, *, fail: bool = False):
        self.candles = candles or []
        self.fail = fail
        self.calls: list[tuple[int, int]] = []

    def get_daily_candles(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle]:
        self.calls.append((start_ms, end_ms))
        if self.fail:
            raise MarketDataUnavailableError("klines offline")
        return [row for row in self.candles if start_ms <= row.timestamp_ms <= end_ms]


def _candle(timestamp_ms: int) -> OhlcvCandle:
    return OhlcvCandle(
        timestamp_ms=timestamp_ms,
        open=Decimal("0.40"),
        high=Decimal("0.45"),
        low=Decimal("0.39"),
        close=Decimal("0.42"),
        volume=Decimal("100000"),
    )


def _command(**overrides) -> RunBacktestInput:
    values = {
        "pool_address": "pool-1",
        "total_liquidity_usd": Decimal("1000"),
        "bin_range_percent": Decimal("1"),
        "period": "7d",
    }
    values.update(overrides)
    return RunBacktestInput(**values)


class RunBacktestUseCaseTests(unittest.TestCase):
    def setUp(self):
        self.snapshot_port = FakeSnapshotPort(
            [
                _snapshot(DAY0 - 20 * MS_PER_DAY, 130),
                _snapshot(DAY0 + HOUR, 100),
                _snapshot(DAY0 + 2 * HOUR, 101),
                _snapshot(DAY0 + 3 * HOUR, 100),
            ]
        )
        self.ohlcv_port = FakeOhlcvPort([_candle(DAY0)])

    def _use_case(self, **kwargs) -> RunBacktestUseCase:
        return RunBacktestUseCase(
            snapshot_port=self.snapshot_port,
            ohlcv_port=self.ohlcv_port,
            **kwargs,
        )

    def test_runs_on_the_window_ending_at_latest_snapshot(self):
        output = self._use_case().execute(_command())

        self.assertEqual(output.pool_address, "pool-1")
        self.assertEqual(output.days, 7)
        self.assertEqual(self.snapshot_port.last_window, (DAY0 + 3 * HOUR - 7 * MS_PER_DAY, DAY0 + 3 * HOUR))
        self.assertEqual(self.ohlcv_port.calls, [(DAY0 - 7 * MS_PER_DAY, DAY0 + 3 * HOUR)])
        self.assertEqual(output.result.snapshot_count, 3)
        self.assertEqual(output.result.time_in_range["spot"], Decimal("1"))
        self.assertGreater(output.result.strategy_wise_fees["spot"], Decimal("0"))

    def test_uses_default_pool_address(self):
        output = self._use_case(default_pool_address="pool-1").execute(_command(pool_address=None))

        self.assertEqual(output.pool_address, "pool-1")

    def test_base_fee_rate_scales_fees(self):
        low = self._use_case(base_fee_rate=Decimal("0.01")).execute(_command())
        high = self._use_case(base_fee_rate=Decimal("0.02")).execute(_command())

        doubled = low.result.strategy_wise_fees["spot"] * 2
        self.assertLess(abs(high.result.strategy_wise_fees["spot"] - doubled), Decimal("1e-18"))

    def test_unknown_pool_raises_data_not_found(self):
        with self.assertRaises(BacktestDataNotFoundError) as ctx:
            self._use_case().execute(_command(pool_address="other"))

        self.assertEqual(ctx.exception.code, "latest_snapshot_not_found")

    def test_invalid_parameters(self):
        use_case = self._use_case()
        invalid = [
            _command(pool_address=None),
            _command(total_liquidity_usd=Decimal("0")),
            _command(bin_range_percent=Decimal("-1")),
            _command(period="fortnight"),
            _command(concentration="extreme"),
        ]
        for command in invalid:
            with self.assertRaises(InvalidParameterError):
                use_case.execute(command)

    def test_market_data_failure_propagates(self):
        self.ohlcv_port = FakeOhlcvPort(fail=True)

        with self.assertRaises(MarketDataUnavailableError):
            self._use_case().execute(_command())

    def test_timeline_is_optional(self):
        output = self._use_case().execute(_command(include_timeline=True))

        self.assertEqual(len(output.result.timeline["curve"]), 3)

    def test_first_day_candle_is_fetched_for_a_mid_day_window_start(self):
        first_day = DAY0 - 7 * MS_PER_DAY
        self.snapshot_port = FakeSnapshotPort(
            [
                _snapshot(first_day + 12 * HOUR, 100),
                _snapshot(DAY0 + 3 * HOUR, 100),
                _snapshot(DAY0 + 6 * HOUR, 100),
            ]
        )
        self.ohlcv_port = FakeOhlcvPort([_candle(first_day), _candle(DAY0)])

        output = self._use_case().execute(_command())

        start_ms, _ = self.ohlcv_port.calls[0]
        self.assertEqual(start_ms % MS_PER_DAY, 0)
        self.assertEqual(start_ms, first_day)
        self.assertEqual(output.result.snapshot_count, 3)
        self.assertEqual(output.result.missing_market_days, ())
