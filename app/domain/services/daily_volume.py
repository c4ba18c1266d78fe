from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone
from decimal import Decimal
import logging

from app.domain.entities.backtest import DailyBinActivity, DailyVolume, VolumeAttribution
from app.domain.entities.ohlcv import OhlcvCandle
from app.domain.entities.snapshot import BinSnapshot, PoolSnapshot


MS_PER_DAY = 86_400_000
# Epoch values below this are seconds, not milliseconds.
SECONDS_EPOCH_THRESHOLD = 10**12
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
logger = logging.getLogger(__name__)


def normalize_timestamp_ms(timestamp: int) -> int:
    if abs(timestamp) < SECONDS_EPOCH_THRESHOLD:
        return int(timestamp) * 1000
    return int(timestamp)


def utc_day(timestamp: int) -> str:
    day_index = normalize_timestamp_ms(timestamp) // MS_PER_DAY
    return (_EPOCH + timedelta(days=day_index)).date().isoformat()


def bin_liquidity_usd(row: BinSnapshot, *, decimals_x: int, decimals_y: int) -> Decimal:
    amount_x = Decimal(row.liquidity_x) / (Decimal(10) ** decimals_x)
    amount_y = Decimal(row.liquidity_y) / (Decimal(10) ** decimals_y)
    return amount_x * row.price + amount_y


def group_snapshots_by_day(snapshots: Iterable[PoolSnapshot]) -> dict[str, list[PoolSnapshot]]:
    grouped: dict[str, list[PoolSnapshot]] = {}
    for snapshot in snapshots:
        grouped.setdefault(utc_day(snapshot.timestamp), []).append(snapshot)
    return grouped


def index_candles_by_day(candles: Iterable[OhlcvCandle]) -> dict[str, OhlcvCandle]:
    indexed: dict[str, OhlcvCandle] = {}
    for candle in candles:
        indexed.setdefault(utc_day(candle.timestamp_ms), candle)
    return indexed


def day_volume_usd(candle: OhlcvCandle) -> Decimal:
    mid_price = (candle.open + candle.close) / Decimal("2")
    return mid_price * candle.volume


def active_bin_proportions(snapshots: Sequence[PoolSnapshot]) -> dict[int, tuple[int, Decimal]]:
    counts = Counter(snapshot.active_bin_id for snapshot in snapshots)
    total = Decimal(len(snapshots))
    return {
        bin_id: (count, Decimal(count) / total)
        for bin_id, count in sorted(counts.items())
    }


def average_bin_liquidity_usd(snapshots: Sequence[PoolSnapshot], *, bin_id: int) -> Decimal:
    """Media da liquidez USD do bin nos snapshots do dia que trazem esse bin."""
    values: list[Decimal] = []
    for snapshot in snapshots:
        row = snapshot.find_bin(bin_id)
        if row is None:
            continue
        values.append(
            bin_liquidity_usd(
                row,
                decimals_x=snapshot.reserve_x_decimal,
                decimals_y=snapshot.reserve_y_decimal,
            )
        )
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / Decimal(len(values))


def attribute_daily_volume(
    *,
    snapshots: Sequence[PoolSnapshot],
    candles: Sequence[OhlcvCandle],
) -> VolumeAttribution:
    candles_by_day = index_candles_by_day(candles)
    days: list[DailyVolume] = []
    missing: list[str] = []

    for date, day_snapshots in sorted(group_snapshots_by_day(snapshots).items()):
        candle = candles_by_day.get(date)
        if candle is None:
            logger.warning(
                "daily_volume: missing_candle date=%s snapshots=%s",
                date,
                len(day_snapshots),
            )
            missing.append(date)
            continue

        volume_usd = day_volume_usd(candle)
        bins = tuple(
            DailyBinActivity(
                date=date,
                bin_id=bin_id,
                snapshot_count=count,
                proportion=proportion,
                avg_liquidity_usd=average_bin_liquidity_usd(day_snapshots, bin_id=bin_id),
                volume_usd=proportion * volume_usd,
            )
            for bin_id, (count, proportion) in active_bin_proportions(day_snapshots).items()
        )
        days.append(
            DailyVolume(
                date=date,
                snapshot_count=len(day_snapshots),
                protocol_fee_bps=day_snapshots[0].protocol_fee,
                day_volume_usd=volume_usd,
                bins=bins,
            )
        )

    return VolumeAttribution(days=tuple(days), missing_market_days=tuple(missing))
