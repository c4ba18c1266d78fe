from __future__ import annotations

from typing import Protocol

from app.domain.entities.snapshot import PoolSnapshot


class SnapshotPort(Protocol):
    def get_latest_timestamp(self, *, pool_address: str) -> int | None:
        ...

    def list_snapshots(
        self,
        *,
        pool_address: str,
        start_ms: int,
        end_ms: int,
    ) -> list[PoolSnapshot]:
        ...
