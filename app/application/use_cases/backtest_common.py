from __future__ import annotations

from app.application.ports.snapshot_port import SnapshotPort
from app.domain.entities.snapshot import PoolSnapshot
from app.domain.entities.strategy import CONCENTRATIONS
from app.domain.exceptions import BacktestDataNotFoundError, InvalidParameterError
from app.domain.services.backtest import period_window


DATA_NOT_FOUND_MESSAGE = "Nao foi possivel realizar o backtest com os dados disponiveis."


def resolve_pool_address(pool_address: str | None, default_pool_address: str) -> str:
    resolved = (pool_address or default_pool_address or "").strip()
    if not resolved:
        raise InvalidParameterError("pool_address is required.")
    return resolved


def normalize_concentration(concentration: str) -> str:
    normalized = concentration.strip().lower()
    if normalized not in CONCENTRATIONS:
        raise InvalidParameterError("concentration must be one of: low, medium, high.")
    return normalized


def load_window_snapshots(
    *,
    snapshot_port: SnapshotPort,
    pool_address: str,
    days: int,
) -> tuple[list[PoolSnapshot], int, int]:
    latest = snapshot_port.get_latest_timestamp(pool_address=pool_address)
    if latest is None:
        raise BacktestDataNotFoundError(
            f"{DATA_NOT_FOUND_MESSAGE} No snapshots stored for pool.",
            code="latest_snapshot_not_found",
            context={"pool_address": pool_address},
        )
    start_ms, end_ms = period_window(latest_timestamp=latest, days=days)
    snapshots = snapshot_port.list_snapshots(
        pool_address=pool_address,
        start_ms=start_ms,
        end_ms=end_ms,
    )
    if not snapshots:
        raise BacktestDataNotFoundError(
            f"{DATA_NOT_FOUND_MESSAGE} No snapshots in the requested window.",
            code="window_without_snapshots",
            context={"pool_address": pool_address, "start_ms": start_ms, "end_ms": end_ms},
        )
    return sorted(snapshots, key=lambda row: row.timestamp), start_ms, end_ms
