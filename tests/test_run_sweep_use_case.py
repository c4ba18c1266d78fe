from __future__ import annotations

from decimal import Decimal
import unittest

from app.application.dto.sweep import RunSweepInput
from app.application.use_cases.run_sweep import RunSweepUseCase
from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.entities.snapshot import PoolSnapshot
from app.domain.exceptions import BacktestDataNotFoundError, InvalidParameterError, MarketDataUnavailableError
from app.domain.services.daily_volume import MS_PER_DAY


DAY0 = 1_699_920_000_000


def _snapshot(timestamp: int, active_bin_id: int = 100) -> PoolSnapshot:
    return PoolSnapshot(
        timestamp=timestamp,
        active_bin_id=active_bin_id,
        bin_step=50,
        protocol_fee=1000,
        current_price=Decimal("0.41"),
        reserve_x_decimal=6,
        reserve_y_decimal=6,
        bin_data=(),
        pool_address="pool-1",
    )


class FakeSnapshotPort:
    def __init__(self, snapshots: list[PoolSnapshot]):
        self.snapshots = snapshots
        self.list_calls = 0

    def get_latest_timestamp(self, *, pool_address: str) -> int | None:
        rows = [row.timestamp for row in self.snapshots if row.pool_address == pool_address]
        return max(rows) if rows else None

    def list_snapshots(self, *, pool_address: str, start_ms: int, end_ms: int) -> list[PoolSnapshot]:
        self.list_calls += 1
        return [row for row in self.snapshots if start_ms <= row.timestamp <= end_ms]


class FakeOhlcvPort:
    def __init__(self, *, fail_for_window_days: int | None = None):
        self.fail_for_window_days = fail_for_window_days
        self.calls: list[tuple[int, int]] = []

    def get_daily_candles(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle]:
        self.calls.append((start_ms, end_ms))
        if self.fail_for_window_days is not None and end_ms - start_ms == self.fail_for_window_days * MS_PER_DAY:
            raise MarketDataUnavailableError("klines offline")
        day = DAY0 - (DAY0 % MS_PER_DAY)
        return [
            OhlcvCandle(
                timestamp_ms=day - offset * MS_PER_DAY,
                open=Decimal("0.40"),
                high=Decimal("0.45"),
                low=Decimal("0.39"),
                close=Decimal("0.42"),
                volume=Decimal("1000"),
            )
            for offset in range(40)
        ]


class RunSweepUseCaseTests(unittest.TestCase):
    def setUp(self):
        self.snapshot_port = FakeSnapshotPort(
            [_snapshot(DAY0 - offset * MS_PER_DAY, 100 + offset % 3) for offset in range(25)]
        )

    def test_runs_full_matrix_with_one_snapshot_load(self):
        ohlcv_port = FakeOhlcvPort()
        use_case = RunSweepUseCase(snapshot_port=self.snapshot_port, ohlcv_port=ohlcv_port)

        output = use_case.execute(RunSweepInput(pool_address="pool-1"))

        self.assertEqual(output.pool_address, "pool-1")
        self.assertEqual(len(output.result.rows), 32)
        self.assertEqual(output.result.failures, ())
        self.assertEqual(self.snapshot_port.list_calls, 1)
        self.assertEqual(len(ohlcv_port.calls), 2)
        seven_day = output.result.rows[0]
        thirty_day = output.result.rows[-1]
        self.assertEqual(seven_day.snapshot_count, 8)
        self.assertEqual(thirty_day.snapshot_count, 25)
        self.assertIsNotNone(output.result.best_efficiency)
        self.assertIsNotNone(output.result.best_fees)

    def test_market_data_failure_drops_only_that_period(self):
        use_case = RunSweepUseCase(
            snapshot_port=self.snapshot_port,
            ohlcv_port=FakeOhlcvPort(fail_for_window_days=30),
            max_workers=4,
        )

        output = use_case.execute(RunSweepInput(pool_address="pool-1"))

        self.assertEqual({row.config.period for row in output.result.rows}, {"7d"})
        self.assertEqual(len(output.result.rows), 16)
        self.assertEqual(len(output.result.failures), 16)
        self.assertIn("klines offline", output.result.failures[0].reason)

    def test_custom_matrix(self):
        use_case = RunSweepUseCase(snapshot_port=self.snapshot_port, ohlcv_port=FakeOhlcvPort())

        output = use_case.execute(
            RunSweepInput(
                pool_address="pool-1",
                liquidity_levels=(Decimal("250"),),
                bin_ranges=(Decimal("0.5"), Decimal("3")),
                periods=("1d",),
                concentration="high",
            )
        )

        self.assertEqual([row.total_bins for row in output.result.rows], [3, 13])

    def test_invalid_input(self):
        use_case = RunSweepUseCase(snapshot_port=self.snapshot_port, ohlcv_port=FakeOhlcvPort())

        with self.assertRaises(InvalidParameterError):
            use_case.execute(RunSweepInput(pool_address="pool-1", liquidity_levels=(Decimal("-5"),)))
        with self.assertRaises(InvalidParameterError):
            use_case.execute(RunSweepInput(pool_address="pool-1", periods=()))

    def test_pool_without_snapshots(self):
        use_case = RunSweepUseCase(snapshot_port=self.snapshot_port, ohlcv_port=FakeOhlcvPort())

        with self.assertRaises(BacktestDataNotFoundError):
            use_case.execute(RunSweepInput(pool_address="missing"))


class KlinesLikeOhlcvPort:
    """Devolve apenas candles com abertura dentro de [start_ms, end_ms]."""

    def __init__(self, days: list[int]):
        self.days = days
        self.calls: list[tuple[int, int]] = []

    def get_daily_candles(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle]:
        self.calls.append((start_ms, end_ms))
        return [
            OhlcvCandle(
                timestamp_ms=day,
                open=Decimal("0.40"),
                high=Decimal("0.45"),
                low=Decimal("0.39"),
                close=Decimal("0.42"),
                volume=Decimal("1000"),
            )
            for day in self.days
            if start_ms <= day <= end_ms
        ]


class SweepCandleWindowTests(unittest.TestCase):
    def test_each_period_fetches_candles_from_midnight_of_its_first_day(self):
        hour = 3_600_000
        latest = DAY0 + 12 * hour
        snapshot_port = FakeSnapshotPort(
            [_snapshot(latest - offset * MS_PER_DAY) for offset in range(8)]
        )
        ohlcv_port = KlinesLikeOhlcvPort([DAY0 - offset * MS_PER_DAY for offset in range(10)])
        use_case = RunSweepUseCase(snapshot_port=snapshot_port, ohlcv_port=ohlcv_port)

        output = use_case.execute(
            RunSweepInput(
                pool_address="pool-1",
                liquidity_levels=(Decimal("1000"),),
                bin_ranges=(Decimal("1"),),
                periods=("1d", "7d"),
            )
        )

        self.assertEqual(
            ohlcv_port.calls,
            [(DAY0 - MS_PER_DAY, latest), (DAY0 - 7 * MS_PER_DAY, latest)],
        )
        for start_ms, _ in ohlcv_port.calls:
            self.assertEqual(start_ms % MS_PER_DAY, 0)
        self.assertEqual(len(output.result.rows), 2)
        for row in output.result.rows:
            self.assertEqual(row.missing_market_days, ())
