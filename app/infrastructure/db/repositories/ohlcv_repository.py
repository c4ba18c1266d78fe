from __future__ import annotations

from sqlalchemy import text

from app.application.ports.ohlcv_port import OhlcvPort
from app.domain.entities.ohlcv import OhlcvCandle
from app.infrastructure.db.mappers.ohlcv_mapper import map_row_to_ohlcv_candle


class SqlOhlcvRepository(OhlcvPort):
    def __init__(self, engine, *, exchange: str, symbol: str):
        self._engine = engine
        self._exchange = exchange
        self._symbol = symbol

    def get_daily_candles(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle]:
        sql = """
            SELECT
              c.day_start,
              c.open,
              c.high,
              c.low,
              c.close,
              c.volume
            FROM public.crypto_ohlc_daily c
            WHERE c.exchange = :exchange
              AND c.symbol = :symbol
              AND c.timeframe = '1d'
              AND c.day_start >= (date_trunc('day', to_timestamp(CAST(:start_ms AS bigint) / 1000.0) AT TIME ZONE 'UTC'))::date
              AND c.day_start <= (to_timestamp(CAST(:end_ms AS bigint) / 1000.0) AT TIME ZONE 'UTC')::date
              AND c.volume IS NOT NULL
            ORDER BY c.day_start ASC
        """
        params = {
            "exchange": self._exchange,
            "symbol": self._symbol,
            "start_ms": start_ms,
            "end_ms": end_ms,
        }
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), params).mappings().all()
        return [map_row_to_ohlcv_candle(row) for row in rows]
