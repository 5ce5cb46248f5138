"""
Length units and unit-aware numbers.

CANONICAL UNIT: every length is normalized to millimetres the moment it is
created, so a length Number always carries Unit.MM. Unitless numbers carry no
unit and keep Python int-ness where the operation allows it.

Conversion factors to millimetres:
- mm = 1
- cm = 10
- m  = 1000
- in = 25.4
- ft = 304.8
- yd = 914.4
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from gcad.utils.errors import ConfigError, ScriptRuntimeError, ScriptTypeError


class Unit(Enum):
    MM = ("mm", 1.0)
    CM = ("cm", 10.0)
    M = ("m", 1000.0)
    IN = ("in", 25.4)
    FT = ("ft", 304.8)
    YD = ("yd", 914.4)

    def __init__(self, symbol: str, factor: float):
        self.symbol = symbol
        self.factor = factor

    @classmethod
    def from_symbol(cls, symbol: str) -> 'Unit':
        for unit in cls:
            if unit.symbol == symbol:
                return unit
        raise ConfigError(f"Unknown length unit '{symbol}'. "
                          f"Supported: {[u.symbol for u in cls]}")


CANONICAL_UNIT = Unit.MM

UNIT_SYMBOLS = tuple(unit.symbol for unit in Unit)

# Largest results that still convert to a float
MAX_INTEGER_BITS = 1023
MAX_FACTORIAL = 170


def _as_unit(unit: Union[Unit, str]) -> Unit:
    if isinstance(unit, Unit):
        return unit
    return Unit.from_symbol(unit)


def to_canonical(value: float, unit: Union[Unit, str]) -> float:
    """
    Convert a length from the given unit to millimetres.

    Args:
        value: Length magnitude
        unit: Source unit or its symbol ('in', 'cm', ...)

    Returns:
        Length in millimetres
    """
    return value * _as_unit(unit).factor


def from_canonical(value: float, unit: Union[Unit, str]) -> float:
    """Convert a length in millimetres to the given unit."""
    return value / _as_unit(unit).factor


def convert_length(value: float, from_unit: Union[Unit, str],
                   to_unit: Union[Unit, str]) -> float:
    """Convert a length between any two supported units."""
    return from_canonical(to_canonical(value, from_unit), to_unit)


@dataclass(frozen=True)
class Number:
    """A numeric script value, either unitless or a canonical length."""
    value: Union[int, float]
    unit: Optional[Unit] = None

    @classmethod
    def length(cls, value: float, unit: Union[Unit, str] = CANONICAL_UNIT) -> 'Number':
        return cls(float(to_canonical(value, unit)), CANONICAL_UNIT)

    @property
    def is_length(self) -> bool:
        return self.unit is not None

    @property
    def kind(self) -> str:
        return "length" if self.is_length else "number"

    def is_integral(self) -> bool:
        if isinstance(self.value, int):
            return True
        return math.isfinite(self.value) and float(self.value).is_integer()

    def in_unit(self, unit: Union[Unit, str]) -> float:
        """Magnitude expressed in another length unit."""
        return from_canonical(self.value, unit)

    def __str__(self):
        if self.is_length:
            return f"{self.value:g}{self.unit.symbol}"
        return f"{self.value}"


def _type_error(operator: str, lhs: Number, rhs: Number) -> ScriptTypeError:
    return ScriptTypeError(
        f"unsupported operand kinds for '{operator}': {lhs.kind} and {rhs.kind}")


def _overflow(operator: str) -> ScriptRuntimeError:
    return ScriptRuntimeError(f"result of '{operator}' overflows")


def add(lhs: Number, rhs: Number) -> Number:
    if lhs.is_length != rhs.is_length:
        raise _type_error('+', lhs, rhs)
    try:
        return Number(lhs.value + rhs.value, lhs.unit)
    except OverflowError:
        raise _overflow('+') from None


def subtract(lhs: Number, rhs: Number) -> Number:
    if lhs.is_length != rhs.is_length:
        raise _type_error('-', lhs, rhs)
    try:
        return Number(lhs.value - rhs.value, lhs.unit)
    except OverflowError:
        raise _overflow('-') from None


def multiply(lhs: Number, rhs: Number) -> Number:
    # No area units
    if lhs.is_length and rhs.is_length:
        raise _type_error('*', lhs, rhs)
    try:
        return Number(lhs.value * rhs.value, lhs.unit or rhs.unit)
    except OverflowError:
        raise _overflow('*') from None


def divide(lhs: Number, rhs: Number) -> Number:
    if rhs.is_length:
        raise _type_error('/', lhs, rhs)
    if rhs.value == 0:
        raise ScriptRuntimeError("division by zero")
    try:
        return Number(lhs.value / rhs.value, lhs.unit)
    except OverflowError:
        raise _overflow('/') from None


def power(lhs: Number, rhs: Number) -> Number:
    if lhs.is_length or rhs.is_length:
        raise _type_error('^', lhs, rhs)
    if lhs.value == 0 and rhs.value < 0:
        raise ScriptRuntimeError("zero cannot be raised to a negative power")
    if lhs.value < 0 and not rhs.is_integral():
        raise ScriptRuntimeError(
            f"negative base {lhs.value} with non-integral exponent {rhs.value}")
    # Integer powers are exact, so bound them before computing
    if (isinstance(lhs.value, int) and isinstance(rhs.value, int)
            and abs(lhs.value) > 1 and rhs.value > 0
            and (rhs.value > MAX_INTEGER_BITS
                 or rhs.value * math.log2(abs(lhs.value)) > MAX_INTEGER_BITS)):
        raise _overflow('^')
    try:
        result = lhs.value ** rhs.value
    except OverflowError:
        raise _overflow('^') from None
    return Number(result)


def negate(operand: Number) -> Number:
    return Number(-operand.value, operand.unit)


def factorial(operand: Number) -> Number:
    if operand.is_length:
        raise ScriptTypeError("unsupported operand kind for '!': length")
    if not operand.is_integral() or operand.value < 0:
        raise ScriptRuntimeError(
            f"factorial requires a non-negative integer, got {operand.value}")
    if operand.value > MAX_FACTORIAL:
        raise ScriptRuntimeError(f"{operand.value}! overflows")
    return Number(math.factorial(int(operand.value)))
