from __future__ import annotations

from sqlalchemy import text

from app.application.ports.snapshot_port import SnapshotPort
from app.domain.entities.snapshot import PoolSnapshot
from app.infrastructure.db.mappers.pool_snapshot_mapper import map_row_to_pool_snapshot


class SqlPoolSnapshotRepository(SnapshotPort):
    def __init__(self, engine):
        self._engine = engine

    def get_latest_timestamp(self, *, pool_address: str) -> int | None:
        sql = """
            SELECT MAX(s.timestamp) AS latest
            FROM public.pool_snapshots s
            WHERE s.pool_address = :pool_address
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"pool_address": pool_address}).mappings().first()
        if row is None or row["latest"] is None:
            return None
        return int(row["latest"])

    def list_snapshots(
        self,
        *,
        pool_address: str,
        start_ms: int,
        end_ms: int,
    ) -> list[PoolSnapshot]:
        sql = """
            SELECT
              s.timestamp,
              s.pool_address,
              s.pool_name,
              s.active_bin_id,
              s.bin_step,
              s.protocol_fee,
              s.current_price,
              s.reserve_x_decimal,
              s.reserve_y_decimal,
              s.bin_data
            FROM public.pool_snapshots s
            WHERE s.pool_address = :pool_address
              AND s.timestamp >= :start_ms
              AND s.timestamp <= :end_ms
            ORDER BY s.timestamp ASC
        """
        params = {
            "pool_address": pool_address,
            "start_ms": start_ms,
            "end_ms": end_ms,
        }
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), params).mappings().all()
        return [map_row_to_pool_snapshot(row) for row in rows]
