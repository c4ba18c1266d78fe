from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_run_backtest_use_case
from app.api.schemas.backtest import (
    BacktestRequest,
    BacktestResponse,
    BinAllocationResponse,
    BinFeesResponse,
    DailyBinActivityResponse,
    EfficiencyPointResponse,
    StrategyAllocationResponse,
    StrategyPerformanceResponse,
)
from app.application.dto.backtest import RunBacktestInput
from app.application.use_cases.run_backtest import RunBacktestUseCase
from app.domain.entities.backtest import StrategyPerformance
from app.domain.entities.strategy import StrategyName
from app.domain.exceptions import (
    BacktestDataNotFoundError,
    InvalidParameterError,
    MarketDataUnavailableError,
)
from app.domain.services.allocation import total_base_amount, total_quote_amount

router = APIRouter()
logger = logging.getLogger(__name__)


def performance_responses(
    performance: dict[StrategyName, StrategyPerformance],
) -> list[StrategyPerformanceResponse]:
    return [
        StrategyPerformanceResponse(
            strategy=row.strategy,
            time_in_range=row.time_in_range,
            liquidity_efficiency=row.liquidity_efficiency,
            avg_utilization_when_active=row.avg_utilization_when_active,
            peak_utilization=row.peak_utilization,
            utilization_stability=row.utilization_stability,
            fees_usd=row.fees_usd,
            active_snapshots=row.active_snapshots,
            total_snapshots=row.total_snapshots,
        )
        for row in performance.values()
    ]


def data_not_found_exception(exc: BacktestDataNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "message": str(exc),
            "code": exc.code,
            "context": exc.context,
        },
    )


@router.post("/v1/backtest", response_model=BacktestResponse)
def run_backtest(
    req: BacktestRequest,
    use_case: RunBacktestUseCase = Depends(get_run_backtest_use_case),
):
    try:
        output = use_case.execute(
            RunBacktestInput(
                pool_address=req.pool_address,
                total_liquidity_usd=req.total_liquidity_usd,
                bin_range_percent=req.bin_range_percent,
                period=req.period,
                concentration=req.concentration,
                include_timeline=req.include_timeline,
            )
        )
    except BacktestDataNotFoundError as exc:
        logger.warning(
            "backtest_router: data_not_found pool=%s period=%s code=%s context=%s detail=%s",
            req.pool_address,
            req.period,
            exc.code,
            exc.context,
            exc,
        )
        raise data_not_found_exception(exc) from exc
    except InvalidParameterError as exc:
        logger.warning(
            "backtest_router: invalid_input pool=%s period=%s detail=%s",
            req.pool_address,
            req.period,
            exc,
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MarketDataUnavailableError as exc:
        logger.warning(
            "backtest_router: market_data_unavailable pool=%s period=%s detail=%s",
            req.pool_address,
            req.period,
            exc,
        )
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    result = output.result
    timeline = None
    if req.include_timeline:
        timeline = {
            name: [
                EfficiencyPointResponse(
                    total_snapshots=point.total_snapshots,
                    active_snapshots=point.active_snapshots,
                    time_in_range=point.time_in_range,
                    overall_efficiency=point.overall_efficiency,
                    avg_utilization_when_active=point.avg_utilization_when_active,
                )
                for point in points
            ]
            for name, points in result.timeline.items()
        }

    return BacktestResponse(
        pool_address=output.pool_address,
        period=output.period,
        days=output.days,
        start_timestamp=result.start_timestamp,
        end_timestamp=result.end_timestamp,
        snapshot_count=result.snapshot_count,
        strategies=performance_responses(result.performance),
        allocations=[
            StrategyAllocationResponse(
                strategy=name,
                total_liquidity_usd=allocation.total_liquidity_usd,
                total_base_amount=total_base_amount(allocation),
                total_quote_amount=total_quote_amount(allocation),
                bins=[
                    BinAllocationResponse(
                        bin_id=row.bin_id,
                        liquidity_x=row.liquidity_x,
                        liquidity_y=row.liquidity_y,
                        total_liquidity_usd=row.total_liquidity_usd,
                        weight=row.weight,
                    )
                    for row in allocation.bins
                ],
            )
            for name, allocation in result.allocations.items()
        ],
        bin_wise_fees=[
            BinFeesResponse(bin_id=bin_id, fees_usd=fees)
            for bin_id, fees in sorted(result.bin_wise_fees.items())
        ],
        daily_bins=[
            DailyBinActivityResponse(
                date=row.date,
                bin_id=row.bin_id,
                snapshot_count=row.snapshot_count,
                proportion=row.proportion,
                avg_liquidity_usd=row.avg_liquidity_usd,
                volume_usd=row.volume_usd,
                fees_usd=row.fees_usd,
            )
            for row in result.daily_bins
        ],
        missing_market_days=list(result.missing_market_days),
        timeline=timeline,
    )
