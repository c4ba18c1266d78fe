from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_pool_analytics_use_case
from app.api.routers.backtest import data_not_found_exception
from app.api.schemas.pool_analytics import PoolAnalyticsResponse
from app.application.dto.pool_analytics import GetPoolAnalyticsInput
from app.application.use_cases.get_pool_analytics import GetPoolAnalyticsUseCase
from app.domain.exceptions import BacktestDataNotFoundError, InvalidParameterError

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/v1/pools/{pool_address}/analytics", response_model=PoolAnalyticsResponse)
def get_pool_analytics(
    pool_address: str,
    days: int = Query(default=7, ge=1),
    use_case: GetPoolAnalyticsUseCase = Depends(get_pool_analytics_use_case),
):
    try:
        analytics = use_case.execute(
            GetPoolAnalyticsInput(pool_address=pool_address, period=f"{days}d")
        )
    except BacktestDataNotFoundError as exc:
        logger.warning(
            "pool_analytics_router: data_not_found pool=%s days=%s code=%s detail=%s",
            pool_address,
            days,
            exc.code,
            exc,
        )
        raise data_not_found_exception(exc) from exc
    except InvalidParameterError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return PoolAnalyticsResponse(
        pool_address=analytics.pool_address,
        pool_name=analytics.pool_name,
        days=days,
        start_timestamp=analytics.start_timestamp,
        end_timestamp=analytics.end_timestamp,
        total_snapshots=analytics.total_snapshots,
        price_min=analytics.price_min,
        price_max=analytics.price_max,
        price_avg=analytics.price_avg,
        price_volatility=analytics.price_volatility,
        active_bin_changes=analytics.active_bin_changes,
        avg_liquidity_usd=analytics.avg_liquidity_usd,
    )
