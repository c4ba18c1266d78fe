from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routers.backtest import router as backtest_router
from app.api.routers.pool_analytics import router as pool_analytics_router
from app.api.routers.sweep import router as sweep_router
from app.shared.config import get_settings


logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(title="DLMM Backtest API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(backtest_router)
app.include_router(sweep_router)
app.include_router(pool_analytics_router)


@app.get("/health")
def health():
    return {"status": "ok"}
