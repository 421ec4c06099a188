"""Unit tests for money helpers"""

import pytest
from decimal import Decimal
from billing_gateway.utils.money import round2, to_decimal


def test_round2_half_up():
    assert round2("0.005") == Decimal("0.01")
    assert round2(2.675) == Decimal("2.68")
    assert round2(Decimal("-1.005")) == Decimal("-1.01")


def test_to_decimal_converts_floats_through_str():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(" 12.50 ") == Decimal("12.50")


@pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", Decimal("-Infinity")])
def test_non_numbers_rejected(value):
    with pytest.raises(ValueError):
        to_decimal(value)


def test_values_too_large_to_round_rejected():
    with pytest.raises(ValueError):
        round2("1e27")
    with pytest.raises(ValueError):
        round2(Decimal("1e30"))
