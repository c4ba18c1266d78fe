from __future__ import annotations


class DomainError(Exception):
    """Base para erros de dominio."""


class InvalidParameterError(DomainError):
    """Parametros invalidos para alocacao ou backtest."""


class BacktestDataNotFoundError(DomainError):
    """Nao existem snapshots suficientes para o backtest."""

    def __init__(self, message: str, *, code: str = "data_not_found", context: dict | None = None):
        super().__init__(message)
        self.code = code
        self.context = context or {}


class MarketDataUnavailableError(DomainError):
    """Nao foi possivel obter candles OHLCV para o periodo."""
