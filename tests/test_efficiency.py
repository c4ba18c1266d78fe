from __future__ import annotations

from decimal import Decimal
import unittest

from app.domain.entities.snapshot import PoolSnapshot
from app.domain.entities.strategy import BinAllocation, StrategyAllocation
from app.domain.services.activity import activity_points, instantaneous_utilization, track_activity
from app.domain.services.efficiency import (
    calculate_efficiency,
    efficiency_timeline,
    progressive_efficiency,
)


def _snapshot(timestamp: int, active_bin_id: int) -> PoolSnapshot:
    return PoolSnapshot(
        timestamp=timestamp,
        active_bin_id=active_bin_id,
        bin_step=100,
        protocol_fee=2000,
        current_price=Decimal("1"),
        reserve_x_decimal=6,
        reserve_y_decimal=6,
        bin_data=(),
    )


def _allocation(weights: dict[int, str]) -> StrategyAllocation:
    total = Decimal("100")
    return StrategyAllocation(
        strategy="curve",
        total_liquidity_usd=total,
        bins=tuple(
            BinAllocation(
                bin_id=bin_id,
                liquidity_x=Decimal("0"),
                liquidity_y=total * Decimal(weight),
                total_liquidity_usd=total * Decimal(weight),
                weight=Decimal(weight),
            )
            for bin_id, weight in sorted(weights.items())
        ),
    )


class ActivityTests(unittest.TestCase):
    def test_flags_follow_membership_of_the_active_bin(self):
        allocation = _allocation({9: "0.25", 10: "0.5", 11: "0.25"})
        snapshots = [_snapshot(1, 10), _snapshot(2, 12), _snapshot(3, 9), _snapshot(4, 8)]

        self.assertEqual(track_activity(allocation=allocation, snapshots=snapshots), [True, False, True, False])

    def test_utilization_is_share_of_budget_at_active_bin(self):
        allocation = _allocation({9: "0.25", 10: "0.5", 11: "0.25"})

        self.assertEqual(instantaneous_utilization(allocation=allocation, active_bin_id=10), Decimal("0.5"))
        self.assertEqual(instantaneous_utilization(allocation=allocation, active_bin_id=42), Decimal("0"))

    def test_points_carry_zero_utilization_when_out_of_range(self):
        allocation = _allocation({10: "1"})
        points = activity_points(allocation=allocation, snapshots=[_snapshot(1, 10), _snapshot(2, 11)])

        self.assertEqual([point.in_range for point in points], [True, False])
        self.assertEqual([point.utilization for point in points], [Decimal("1"), Decimal("0")])
        self.assertEqual(points[1].timestamp, 2)


class EfficiencyTests(unittest.TestCase):
    def test_constant_utilization(self):
        allocation = _allocation({9: "0.25", 10: "0.5", 11: "0.25"})
        snapshots = [_snapshot(1, 10), _snapshot(2, 10), _snapshot(3, 30), _snapshot(4, 10)]

        stats = calculate_efficiency(activity_points(allocation=allocation, snapshots=snapshots))

        self.assertEqual(stats.total_snapshots, 4)
        self.assertEqual(stats.active_snapshots, 3)
        self.assertEqual(stats.time_in_range, Decimal("0.75"))
        self.assertEqual(stats.avg_utilization_when_active, Decimal("0.5"))
        self.assertEqual(stats.overall_efficiency, Decimal("0.375"))
        self.assertEqual(stats.peak_utilization, Decimal("0.5"))
        self.assertEqual(stats.utilization_stability, Decimal("0"))

    def test_stability_is_population_std_of_active_utilizations(self):
        allocation = _allocation({9: "0.25", 10: "0.5", 11: "0.25"})
        snapshots = [_snapshot(1, 10), _snapshot(2, 9)]

        stats = calculate_efficiency(activity_points(allocation=allocation, snapshots=snapshots))

        self.assertEqual(stats.peak_utilization, Decimal("0.5"))
        self.assertEqual(stats.avg_utilization_when_active, Decimal("0.375"))
        self.assertEqual(stats.utilization_stability, Decimal("0.125"))

    def test_never_in_range(self):
        allocation = _allocation({10: "1"})
        stats = calculate_efficiency(
            activity_points(allocation=allocation, snapshots=[_snapshot(1, 1), _snapshot(2, 2)])
        )

        self.assertEqual(stats.time_in_range, Decimal("0"))
        self.assertEqual(stats.avg_utilization_when_active, Decimal("0"))
        self.assertEqual(stats.overall_efficiency, Decimal("0"))
        self.assertEqual(stats.peak_utilization, Decimal("0"))

    def test_no_snapshots_yields_zero_metrics(self):
        stats = calculate_efficiency([])

        self.assertEqual(stats.total_snapshots, 0)
        self.assertEqual(stats.time_in_range, Decimal("0"))
        self.assertEqual(stats.overall_efficiency, Decimal("0"))

    def test_progressive_metrics_match_prefix(self):
        allocation = _allocation({9: "0.25", 10: "0.5", 11: "0.25"})
        snapshots = [_snapshot(1, 10), _snapshot(2, 30), _snapshot(3, 9)]
        points = activity_points(allocation=allocation, snapshots=snapshots)

        timeline = efficiency_timeline(points)

        self.assertEqual(len(timeline), 3)
        self.assertEqual(timeline[0].time_in_range, Decimal("1"))
        self.assertEqual(timeline[1].time_in_range, Decimal("0.5"))
        self.assertEqual(timeline[-1], calculate_efficiency(points))
        self.assertEqual(progressive_efficiency(points, upto_index=1), timeline[1])
        self.assertEqual(progressive_efficiency(points, upto_index=-1).total_snapshots, 0)
