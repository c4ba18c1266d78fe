from __future__ import annotations

from decimal import Decimal

from app.domain.exceptions import InvalidParameterError


def bins_per_side(*, range_percent: Decimal, bin_step: int) -> int:
    if bin_step <= 0:
        raise InvalidParameterError("bin_step must be positive.")
    if range_percent <= 0:
        return 0
    return int((Decimal(range_percent) * Decimal("100")) // Decimal(bin_step))


def resolve_bin_ids(*, active_bin_id: int, range_percent: Decimal, bin_step: int) -> list[int]:
    """Bins simetricos em volta do bin ativo, em ordem crescente de id."""
    per_side = bins_per_side(range_percent=range_percent, bin_step=bin_step)
    return [active_bin_id + offset for offset in range(-per_side, per_side + 1)]
