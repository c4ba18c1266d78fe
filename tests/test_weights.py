from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain.exceptions import InvalidParameterError
from app.domain.services.weights import (
    bid_ask_weights,
    curve_weights,
    spot_weights,
    strategy_weights,
)


TOLERANCE = Decimal("1e-9")


@pytest.mark.parametrize("strategy", ["spot", "curve", "bid_ask"])
@pytest.mark.parametrize("num_bins", [1, 2, 3, 11, 101])
def test_weights_sum_to_one(strategy, num_bins):
    weights = strategy_weights(strategy, num_bins)

    assert len(weights) == num_bins
    assert all(weight >= 0 for weight in weights)
    assert abs(sum(weights) - Decimal("1")) < TOLERANCE


@pytest.mark.parametrize("concentration", ["low", "medium", "high"])
def test_concentration_presets_are_normalized(concentration):
    for weights in (
        curve_weights(21, concentration=concentration),
        bid_ask_weights(21, concentration=concentration),
    ):
        assert abs(sum(weights) - Decimal("1")) < TOLERANCE


def test_spot_is_uniform():
    assert spot_weights(3) == [Decimal("1") / Decimal("3")] * 3


def test_curve_peaks_at_center_and_is_symmetric():
    weights = curve_weights(9)

    assert max(weights) == weights[4]
    for index in range(4):
        assert abs(weights[index] - weights[8 - index]) < TOLERANCE
        assert weights[index] < weights[index + 1]


def test_higher_curve_concentration_puts_more_weight_at_center():
    low = curve_weights(21, concentration="low")
    high = curve_weights(21, concentration="high")

    assert high[10] > low[10]


def test_bid_ask_center_is_smaller_than_edges():
    weights = bid_ask_weights(9)

    assert weights[4] < weights[0]
    assert weights[4] < weights[8]
    for index in range(4):
        assert abs(weights[index] - weights[8 - index]) < TOLERANCE
        assert weights[index] > weights[index + 1]


def test_bid_ask_single_bin_gets_everything():
    assert bid_ask_weights(1) == [Decimal("1")]


def test_even_bin_count_has_no_exact_center():
    weights = bid_ask_weights(4)

    assert abs(weights[1] - weights[2]) < TOLERANCE
    assert weights[0] > weights[1]


def test_empty_bin_set_yields_no_weights():
    assert strategy_weights("curve", 0) == []


def test_unknown_strategy_is_rejected():
    with pytest.raises(InvalidParameterError):
        strategy_weights("uniform", 3)


def test_unknown_concentration_is_rejected():
    with pytest.raises(InvalidParameterError):
        curve_weights(3, concentration="extreme")
