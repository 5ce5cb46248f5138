"""
Tests for the unit system and unit-aware arithmetic.

All lengths are canonical millimetres internally; conversions happen when a
literal is created.
"""

import math

import pytest

from gcad.utils import units
from gcad.utils.errors import ConfigError, ScriptRuntimeError, ScriptTypeError
from gcad.utils.units import Number, Unit, convert_length, from_canonical, to_canonical


class TestUnitConversion:
    """Tests for conversion to and from millimetres."""

    @pytest.mark.parametrize("symbol,factor", [
        ("mm", 1.0), ("cm", 10.0), ("m", 1000.0),
        ("in", 25.4), ("ft", 304.8), ("yd", 914.4),
    ])
    def test_to_canonical_factors(self, symbol, factor):
        """Each unit converts to mm by its fixed factor."""
        assert to_canonical(2.0, symbol) == pytest.approx(2.0 * factor)

    def test_from_canonical_inches(self):
        """25.4mm is one inch."""
        assert from_canonical(25.4, Unit.IN) == pytest.approx(1.0)

    def test_convert_length_feet_to_inches(self):
        assert convert_length(1.0, "ft", "in") == pytest.approx(12.0)

    @pytest.mark.parametrize("u1", list(Unit))
    @pytest.mark.parametrize("u2", list(Unit))
    def test_round_trip(self, u1, u2):
        """Converting out to another unit and back gives the original value."""
        value = 3.7
        there = from_canonical(to_canonical(value, u1), u2)
        back = from_canonical(to_canonical(there, u2), u1)
        assert back == pytest.approx(value)

    def test_unknown_unit_symbol(self):
        with pytest.raises(ConfigError):
            to_canonical(1.0, "furlong")


class TestNumber:
    """Tests for the Number value type."""

    def test_length_is_canonicalized(self):
        """A length literal stores millimetres and the mm tag."""
        n = Number.length(1.0, "in")
        assert n.value == pytest.approx(25.4)
        assert n.unit is Unit.MM
        assert n.is_length

    def test_unitless_keeps_int(self):
        n = Number(3)
        assert isinstance(n.value, int)
        assert n.kind == "number"

    def test_in_unit(self):
        assert Number.length(50.8).in_unit("in") == pytest.approx(2.0)

    def test_is_integral(self):
        assert Number(3.0).is_integral()
        assert not Number(3.5).is_integral()


class TestArithmetic:
    """Tests for the operator type rules."""

    def test_add_mm_and_inch(self):
        """Mixed length units add after canonical conversion."""
        result = units.add(Number.length(1.0, "mm"), Number.length(1.0, "in"))
        assert result.value == pytest.approx(26.4)
        assert result.unit is Unit.MM

    def test_add_unitless_to_length_is_type_error(self):
        with pytest.raises(ScriptTypeError) as info:
            units.add(Number(1), Number.length(1.0))
        assert "'+'" in info.value.message
        assert "number and length" in info.value.message

    def test_subtract_lengths(self):
        result = units.subtract(Number.length(1.0, "cm"), Number.length(4.0))
        assert result.value == pytest.approx(6.0)

    def test_int_arithmetic_stays_int(self):
        assert units.add(Number(2), Number(3)).value == 5
        assert isinstance(units.multiply(Number(2), Number(3)).value, int)

    def test_division_gives_float(self):
        result = units.divide(Number(6), Number(3))
        assert isinstance(result.value, float)
        assert result.value == 2.0

    def test_scalar_times_length(self):
        result = units.multiply(Number(2), Number.length(1.0, "in"))
        assert result.is_length
        assert result.value == pytest.approx(50.8)

    def test_length_times_length_rejected(self):
        with pytest.raises(ScriptTypeError):
            units.multiply(Number.length(1.0), Number.length(2.0))

    def test_length_over_scalar(self):
        result = units.divide(Number.length(10.0), Number(4))
        assert result.is_length
        assert result.value == pytest.approx(2.5)

    @pytest.mark.parametrize("lhs,rhs", [
        (Number(1), Number.length(2.0)),
        (Number.length(1.0), Number.length(2.0)),
    ])
    def test_divide_by_length_rejected(self, lhs, rhs):
        with pytest.raises(ScriptTypeError):
            units.divide(lhs, rhs)

    def test_division_by_zero(self):
        with pytest.raises(ScriptRuntimeError):
            units.divide(Number(1), Number(0))

    def test_power(self):
        assert units.power(Number(2), Number(10)).value == 1024

    def test_power_of_length_rejected(self):
        with pytest.raises(ScriptTypeError):
            units.power(Number.length(2.0), Number(2))

    @pytest.mark.parametrize("base,exponent", [(0, -1), (-8, 0.5)])
    def test_power_undefined(self, base, exponent):
        with pytest.raises(ScriptRuntimeError):
            units.power(Number(base), Number(exponent))

    @pytest.mark.parametrize("operation", [units.add, units.subtract, units.multiply,
                                           units.divide])
    def test_integer_too_large_for_float(self, operation):
        with pytest.raises(ScriptRuntimeError):
            operation(Number(2 ** 2000), Number(1.5))

    def test_power_within_range_stays_exact(self):
        assert units.power(Number(2), Number(1000)).value == 2 ** 1000

    @pytest.mark.parametrize("base,exponent", [(2, 1024), (9, 387420489), (10.0, 400)])
    def test_power_out_of_range(self, base, exponent):
        with pytest.raises(ScriptRuntimeError):
            units.power(Number(base), Number(exponent))

    def test_factorial_out_of_range(self):
        assert units.factorial(Number(170)).value == math.factorial(170)
        with pytest.raises(ScriptRuntimeError):
            units.factorial(Number(171))

    def test_negate_keeps_unit(self):
        result = units.negate(Number.length(3.0))
        assert result.value == -3.0
        assert result.is_length

    def test_factorial(self):
        assert units.factorial(Number(5)).value == 120
        assert units.factorial(Number(3.0)).value == 6

    @pytest.mark.parametrize("value", [-1, 2.5])
    def test_factorial_invalid(self, value):
        with pytest.raises(ScriptRuntimeError):
            units.factorial(Number(value))

    def test_factorial_of_length_rejected(self):
        with pytest.raises(ScriptTypeError):
            units.factorial(Number.length(3.0))
