"""Unit tests for the shared request number helpers."""

import pytest

from sampler.schemas import is_finite_number, to_integer


class TestIsFiniteNumber:
    @pytest.mark.parametrize("value", [0, -3, 2.5, 10**300])
    def test_accepts(self, value):
        assert is_finite_number(value) is True

    @pytest.mark.parametrize("value", [True, "1", None, float("nan"), float("inf"), 10**400, -(10**400)])
    def test_rejects(self, value):
        assert is_finite_number(value) is False


class TestToInteger:
    def test_integral_values(self):
        assert to_integer(3) == 3
        assert to_integer(3.0) == 3
        assert to_integer(" 12 ") == 12

    def test_non_integral_values(self):
        assert to_integer(1.5) is None
        assert to_integer("abc") is None
        assert to_integer(False) is None

    def test_values_too_large_for_a_float(self):
        assert to_integer(10**400) is None
        assert to_integer("1e400") is None
