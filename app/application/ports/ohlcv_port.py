from __future__ import annotations

from typing import Protocol

from app.domain.entities.ohlcv import OhlcvCandle


class OhlcvPort(Protocol):
    def get_daily_candles(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle]:
        ...
