from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from app.domain.entities.backtest import ActivityPoint, EfficiencyStats


ZERO = Decimal("0")


@dataclass(frozen=True)
class _Accumulator:
    total: int = 0
    active: int = 0
    utilization_sum: Decimal = ZERO
    mean: Decimal = ZERO
    m2: Decimal = ZERO
    peak: Decimal = ZERO

    def push(self, point: ActivityPoint) -> "_Accumulator":
        if not point.in_range:
            return _Accumulator(
                total=self.total + 1,
                active=self.active,
                utilization_sum=self.utilization_sum,
                mean=self.mean,
                m2=self.m2,
                peak=self.peak,
            )
        # Welford
        active = self.active + 1
        delta = point.utilization - self.mean
        mean = self.mean + delta / Decimal(active)
        m2 = self.m2 + delta * (point.utilization - mean)
        peak = point.utilization if self.active == 0 else max(self.peak, point.utilization)
        return _Accumulator(
            total=self.total + 1,
            active=active,
            utilization_sum=self.utilization_sum + point.utilization,
            mean=mean,
            m2=m2,
            peak=peak,
        )

    def stats(self) -> EfficiencyStats:
        if self.total == 0:
            return EfficiencyStats(
                total_snapshots=0,
                active_snapshots=0,
                time_in_range=ZERO,
                avg_utilization_when_active=ZERO,
                overall_efficiency=ZERO,
                peak_utilization=ZERO,
                utilization_stability=ZERO,
            )
        total = Decimal(self.total)
        stability = ZERO
        if self.active >= 2:
            variance = self.m2 / Decimal(self.active)
            stability = variance.sqrt() if variance > 0 else ZERO
        return EfficiencyStats(
            total_snapshots=self.total,
            active_snapshots=self.active,
            time_in_range=Decimal(self.active) / total,
            avg_utilization_when_active=self.utilization_sum / Decimal(self.active) if self.active else ZERO,
            overall_efficiency=self.utilization_sum / total,
            peak_utilization=self.peak,
            utilization_stability=stability,
        )


def calculate_efficiency(points: Sequence[ActivityPoint]) -> EfficiencyStats:
    acc = _Accumulator()
    for point in points:
        acc = acc.push(point)
    return acc.stats()


def progressive_efficiency(points: Sequence[ActivityPoint], *, upto_index: int) -> EfficiencyStats:
    """Mesmas metricas restritas aos snapshots 0..upto_index (inclusive)."""
    if upto_index < 0:
        return calculate_efficiency([])
    return calculate_efficiency(points[: upto_index + 1])


def efficiency_timeline(points: Sequence[ActivityPoint]) -> list[EfficiencyStats]:
    timeline: list[EfficiencyStats] = []
    acc = _Accumulator()
    for point in points:
        acc = acc.push(point)
        timeline.append(acc.stats())
    return timeline
