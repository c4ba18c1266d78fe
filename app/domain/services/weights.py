from __future__ import annotations

from decimal import Decimal, localcontext

from app.domain.entities.strategy import Concentration, StrategyName
from app.domain.exceptions import InvalidParameterError


DEFAULT_BID_ASK_CENTER_EPSILON = Decimal("0.001")

# numBins / divisor
CURVE_SIGMA_DIVISORS: dict[str, Decimal] = {
    "low": Decimal("4"),
    "medium": Decimal("6"),
    "high": Decimal("8"),
}
BID_ASK_SIGMAS: dict[str, Decimal] = {
    "low": Decimal("0.5"),
    "medium": Decimal("1.0"),
    "high": Decimal("2.0"),
}


def _normalize(raw: list[Decimal]) -> list[Decimal]:
    with localcontext() as ctx:
        ctx.prec = 50
        total = sum(raw, Decimal("0"))
        normalized = [value / total for value in raw]
    return [+value for value in normalized]


def _resolve_concentration(concentration: str) -> str:
    key = concentration.strip().lower()
    if key not in CURVE_SIGMA_DIVISORS:
        raise InvalidParameterError("concentration must be one of: low, medium, high.")
    return key


def spot_weights(num_bins: int) -> list[Decimal]:
    if num_bins <= 0:
        return []
    weight = Decimal("1") / Decimal(num_bins)
    return [weight] * num_bins


def curve_weights(num_bins: int, *, concentration: Concentration = "medium") -> list[Decimal]:
    if num_bins <= 0:
        return []
    sigma = Decimal(num_bins) / CURVE_SIGMA_DIVISORS[_resolve_concentration(concentration)]
    center = Decimal(num_bins - 1) / Decimal("2")
    raw: list[Decimal] = []
    for index in range(num_bins):
        x = (Decimal(index) - center) / sigma
        raw.append((Decimal("-0.5") * x * x).exp())
    return _normalize(raw)


def bid_ask_weights(
    num_bins: int,
    *,
    concentration: Concentration = "medium",
    center_epsilon: Decimal = DEFAULT_BID_ASK_CENTER_EPSILON,
) -> list[Decimal]:
    """Curva em U: peso cresce com a distancia do centro.

    O bin central recebe ``center_epsilon`` vezes o peso maximo das bordas,
    ``exp(center / sigma)``.
    """
    if num_bins <= 0:
        return []
    if center_epsilon <= 0:
        raise InvalidParameterError("center_epsilon must be positive.")
    sigma = BID_ASK_SIGMAS[_resolve_concentration(concentration)]
    center = Decimal(num_bins - 1) / Decimal("2")
    raw: list[Decimal] = []
    for index in range(num_bins):
        distance = abs(Decimal(index) - center)
        if distance == 0:
            raw.append(center_epsilon * (center / sigma).exp())
        else:
            raw.append((distance / sigma).exp())
    return _normalize(raw)


def strategy_weights(
    strategy: StrategyName,
    num_bins: int,
    *,
    concentration: Concentration = "medium",
    center_epsilon: Decimal = DEFAULT_BID_ASK_CENTER_EPSILON,
) -> list[Decimal]:
    if strategy == "spot":
        return spot_weights(num_bins)
    if strategy == "curve":
        return curve_weights(num_bins, concentration=concentration)
    if strategy == "bid_ask":
        return bid_ask_weights(num_bins, concentration=concentration, center_epsilon=center_epsilon)
    raise InvalidParameterError(f"Unknown strategy: {strategy}")
