"""
Operator evaluation for script expressions.
Maps operator symbols onto the unit-aware arithmetic in gcad.utils.units.
"""
from typing import Callable, Dict

from gcad.core.values import String, Value, kind_of
from gcad.utils import units
from gcad.utils.errors import ScriptTypeError
from gcad.utils.units import Number


class ExpressionEvaluator:
    """Applies binary and unary operators to evaluated values."""

    def __init__(self):
        self.binary_operators: Dict[str, Callable[[Number, Number], Number]] = {
            '+': units.add,
            '-': units.subtract,
            '*': units.multiply,
            '/': units.divide,
            '^': units.power,
        }
        self.unary_operators: Dict[str, Callable[[Number], Number]] = {
            '-': units.negate,
            '!': units.factorial,
        }

    def apply_binary(self, operator: str, lhs: Value, rhs: Value) -> Value:
        """
        Apply a binary operator.

        Args:
            operator: One of + - * / ^
            lhs: Left operand
            rhs: Right operand

        Returns:
            The resulting value

        Raises:
            ScriptTypeError: operands are not numbers of compatible kinds
        """
        if operator == '+' and isinstance(lhs, String) and isinstance(rhs, String):
            return String(lhs.text + rhs.text)

        if not isinstance(lhs, Number) or not isinstance(rhs, Number):
            raise ScriptTypeError(
                f"unsupported operand kinds for '{operator}': "
                f"{kind_of(lhs)} and {kind_of(rhs)}")

        return self.binary_operators[operator](lhs, rhs)

    def apply_unary(self, operator: str, operand: Value) -> Value:
        """Apply prefix negation or postfix factorial."""
        if not isinstance(operand, Number):
            raise ScriptTypeError(
                f"unsupported operand kind for '{operator}': {kind_of(operand)}")
        return self.unary_operators[operator](operand)
