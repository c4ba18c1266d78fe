from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_run_sweep_use_case
from app.api.routers.backtest import data_not_found_exception, performance_responses
from app.api.schemas.sweep import (
    SweepBestPerformerResponse,
    SweepConfigResponse,
    SweepFailureResponse,
    SweepRequest,
    SweepResponse,
    SweepRowResponse,
)
from app.application.dto.sweep import RunSweepInput
from app.application.use_cases.run_sweep import RunSweepUseCase
from app.domain.entities.sweep import SweepBestPerformer, SweepConfig
from app.domain.exceptions import BacktestDataNotFoundError, InvalidParameterError

router = APIRouter()
logger = logging.getLogger(__name__)


def _config_response(config: SweepConfig) -> SweepConfigResponse:
    return SweepConfigResponse(
        liquidity_usd=config.liquidity_usd,
        bin_range_percent=config.bin_range_percent,
        period=config.period,
        days=config.days,
        label=config.label,
    )


def _best_response(best: SweepBestPerformer | None) -> SweepBestPerformerResponse | None:
    if best is None:
        return None
    return SweepBestPerformerResponse(
        strategy=best.strategy,
        config=_config_response(best.config),
        value=best.value,
    )


@router.post("/v1/backtest/sweep", response_model=SweepResponse)
def run_sweep(
    req: SweepRequest,
    use_case: RunSweepUseCase = Depends(get_run_sweep_use_case),
):
    try:
        output = use_case.execute(
            RunSweepInput(
                pool_address=req.pool_address,
                liquidity_levels=tuple(req.liquidity_levels),
                bin_ranges=tuple(req.bin_ranges),
                periods=tuple(req.periods),
                concentration=req.concentration,
            )
        )
    except BacktestDataNotFoundError as exc:
        logger.warning(
            "sweep_router: data_not_found pool=%s periods=%s code=%s context=%s detail=%s",
            req.pool_address,
            req.periods,
            exc.code,
            exc.context,
            exc,
        )
        raise data_not_found_exception(exc) from exc
    except InvalidParameterError as exc:
        logger.warning(
            "sweep_router: invalid_input pool=%s periods=%s detail=%s",
            req.pool_address,
            req.periods,
            exc,
        )
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    result = output.result
    return SweepResponse(
        pool_address=output.pool_address,
        rows=[
            SweepRowResponse(
                config=_config_response(row.config),
                total_bins=row.total_bins,
                snapshot_count=row.snapshot_count,
                strategies=performance_responses(row.performance),
                missing_market_days=list(row.missing_market_days),
            )
            for row in result.rows
        ],
        failures=[
            SweepFailureResponse(config=_config_response(row.config), reason=row.reason)
            for row in result.failures
        ],
        best_efficiency=_best_response(result.best_efficiency),
        best_fees=_best_response(result.best_fees),
    )
