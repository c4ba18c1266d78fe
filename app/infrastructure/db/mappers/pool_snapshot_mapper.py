from __future__ import annotations

import json
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from app.domain.entities.snapshot import BinSnapshot, PoolSnapshot


def _raw_amount(value: Any) -> int:
    if value is None or value == "":
        return 0
    return int(Decimal(str(value)))


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def map_bin_data(raw: Any) -> tuple[BinSnapshot, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    rows = [
        BinSnapshot(
            bin_id=int(item["bin_id"]),
            liquidity_x=_raw_amount(item.get("liquidity_x")),
            liquidity_y=_raw_amount(item.get("liquidity_y")),
            price=_decimal(item.get("price")),
        )
        for item in raw
    ]
    return tuple(sorted(rows, key=lambda row: row.bin_id))


def map_row_to_pool_snapshot(row: Mapping[str, Any]) -> PoolSnapshot:
    return PoolSnapshot(
        timestamp=int(row["timestamp"]),
        active_bin_id=int(row["active_bin_id"]),
        bin_step=int(row["bin_step"]),
        protocol_fee=int(row["protocol_fee"]) if row.get("protocol_fee") is not None else 0,
        current_price=_decimal(row["current_price"]),
        reserve_x_decimal=int(row["reserve_x_decimal"]),
        reserve_y_decimal=int(row["reserve_y_decimal"]),
        bin_data=map_bin_data(row.get("bin_data")),
        pool_address=str(row["pool_address"]) if row.get("pool_address") is not None else "",
        pool_name=str(row["pool_name"]) if row.get("pool_name") is not None else "",
    )
