from __future__ import annotations

from dataclasses import dataclass
import logging
from threading import Lock
import time

import httpx

from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.exceptions import MarketDataUnavailableError
from app.infrastructure.db.mappers.ohlcv_mapper import map_kline_to_ohlcv_candle


logger = logging.getLogger(__name__)


KLINES_PATH = "/api/v3/klines"
KLINES_PAGE_LIMIT = 1000


@dataclass(frozen=True)
class OhlcvClientSettings:
    api_base: str
    symbol: str
    timeout_seconds: float
    max_retries: int
    cache_ttl_seconds: float = 300
    interval: str = "1d"


class HttpOhlcvClient:
    """Candles diarios de uma exchange com API de klines no formato Binance."""

    def __init__(self, settings: OhlcvClientSettings):
        self._settings = settings
        self._api_base = settings.api_base.rstrip("/")
        self._cache: dict[tuple[str, int, int], tuple[float, list[OhlcvCandle]]] = {}
        self._lock = Lock()

    def get_daily_candles(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle]:
        if end_ms < start_ms:
            return []

        cached = self._cache_get(start_ms=start_ms, end_ms=end_ms)
        if cached is not None:
            return cached

        candles: list[OhlcvCandle] = []
        cursor = start_ms
        while cursor <= end_ms:
            page = self._get_klines(start_ms=cursor, end_ms=end_ms)
            if not page:
                break
            mapped = [map_kline_to_ohlcv_candle(item) for item in page]
            candles.extend(mapped)
            if len(page) < KLINES_PAGE_LIMIT:
                break
            cursor = mapped[-1].timestamp_ms + 1

        candles.sort(key=lambda candle: candle.timestamp_ms)
        logger.info(
            "ohlcv_client: fetched_candles symbol=%s start_ms=%s end_ms=%s count=%s",
            self._settings.symbol,
            start_ms,
            end_ms,
            len(candles),
        )
        self._cache_set(start_ms=start_ms, end_ms=end_ms, value=candles)
        return list(candles)

    def _get_klines(self, *, start_ms: int, end_ms: int) -> list:
        attempts = max(1, self._settings.max_retries)
        delay = 0.25
        last_exc: Exception | None = None
        params = {
            "symbol": self._settings.symbol,
            "interval": self._settings.interval,
            "startTime": start_ms,
            "endTime": end_ms,
            "limit": KLINES_PAGE_LIMIT,
        }

        for attempt in range(1, attempts + 1):
            try:
                with httpx.Client(timeout=self._settings.timeout_seconds) as client:
                    response = client.get(f"{self._api_base}{KLINES_PATH}", params=params)
                    response.raise_for_status()
                    payload = response.json()
                if not isinstance(payload, list):
                    raise ValueError(f"Resposta inesperada de klines: {payload!r}")
                return payload
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc
                if attempt == attempts:
                    break
                logger.warning(
                    "ohlcv_client: klines_retry attempt=%s/%s error=%s",
                    attempt,
                    attempts,
                    exc,
                )
                time.sleep(delay)
                delay *= 2

        raise MarketDataUnavailableError(
            f"Falha ao buscar candles de {self._settings.symbol}: {last_exc}"
        ) from last_exc

    def _cache_get(self, *, start_ms: int, end_ms: int) -> list[OhlcvCandle] | None:
        if self._settings.cache_ttl_seconds <= 0:
            return None
        key = (self._settings.symbol, start_ms, end_ms)
        now = time.monotonic()
        with self._lock:
            cached = self._cache.get(key)
            if cached is None:
                return None
            expires_at, value = cached
            if expires_at <= now:
                self._cache.pop(key, None)
                return None
            return list(value)

    def _cache_set(self, *, start_ms: int, end_ms: int, value: list[OhlcvCandle]) -> None:
        if self._settings.cache_ttl_seconds <= 0:
            return
        key = (self._settings.symbol, start_ms, end_ms)
        expires_at = time.monotonic() + self._settings.cache_ttl_seconds
        with self._lock:
            self._cache[key] = (expires_at, list(value))
