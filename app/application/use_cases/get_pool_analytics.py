from __future__ import annotations

from app.application.dto.pool_analytics import GetPoolAnalyticsInput
from app.application.ports.snapshot_port import SnapshotPort
from app.application.use_cases.backtest_common import load_window_snapshots, resolve_pool_address
from app.domain.entities.pool_analytics import PoolAnalytics
from app.domain.services.backtest import parse_period
from app.domain.services.pool_analytics import summarize_pool


class GetPoolAnalyticsUseCase:
    def __init__(self, *, snapshot_port: SnapshotPort, default_pool_address: str = ""):
        self._snapshot_port = snapshot_port
        self._default_pool_address = default_pool_address

    def execute(self, command: GetPoolAnalyticsInput) -> PoolAnalytics:
        pool_address = resolve_pool_address(command.pool_address, self._default_pool_address)
        days = parse_period(command.period)
        snapshots, _, _ = load_window_snapshots(
            snapshot_port=self._snapshot_port,
            pool_address=pool_address,
            days=days,
        )
        return summarize_pool(pool_address=pool_address, snapshots=snapshots)
