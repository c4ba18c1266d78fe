from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class BinSnapshot:
    bin_id: int
    liquidity_x: int
    liquidity_y: int
    price: Decimal


@dataclass(frozen=True)
class PoolSnapshot:
    timestamp: int
    active_bin_id: int
    bin_step: int
    protocol_fee: int
    current_price: Decimal
    reserve_x_decimal: int
    reserve_y_decimal: int
    bin_data: tuple[BinSnapshot, ...]
    pool_address: str = ""
    pool_name: str = ""

    def find_bin(self, bin_id: int) -> BinSnapshot | None:
        for row in self.bin_data:
            if row.bin_id == bin_id:
                return row
        return None
