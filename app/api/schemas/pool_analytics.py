from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class PoolAnalyticsResponse(BaseModel):
    pool_address: str
    pool_name: str
    days: int
    start_timestamp: int
    end_timestamp: int
    total_snapshots: int
    price_min: Decimal
    price_max: Decimal
    price_avg: Decimal
    price_volatility: Decimal
    active_bin_changes: int
    avg_liquidity_usd: Decimal
