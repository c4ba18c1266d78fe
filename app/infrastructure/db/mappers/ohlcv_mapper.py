from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.services.daily_volume import normalize_timestamp_ms


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _day_start_ms(value: Any) -> int:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        return int(datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp() * 1000)
    return normalize_timestamp_ms(int(value))


def map_row_to_ohlcv_candle(row: Mapping[str, Any]) -> OhlcvCandle:
    return OhlcvCandle(
        timestamp_ms=_day_start_ms(row["day_start"]),
        open=_decimal(row["open"]),
        high=_decimal(row["high"]),
        low=_decimal(row["low"]),
        close=_decimal(row["close"]),
        volume=_decimal(row["volume"]),
    )


def map_kline_to_ohlcv_candle(kline: Sequence[Any]) -> OhlcvCandle:
    """``[timestamp, open, high, low, close, volume, ...]``, volume no token base."""
    return OhlcvCandle(
        timestamp_ms=normalize_timestamp_ms(int(kline[0])),
        open=_decimal(kline[1]),
        high=_decimal(kline[2]),
        low=_decimal(kline[3]),
        close=_decimal(kline[4]),
        volume=_decimal(kline[5]),
    )
