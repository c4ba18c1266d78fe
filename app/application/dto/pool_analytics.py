from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GetPoolAnalyticsInput:
    pool_address: str | None
    period: str
