"""
Runtime values produced by expression evaluation.
"""
from dataclasses import dataclass
from typing import Tuple, Union

from gcad.utils.units import Number


@dataclass(frozen=True)
class String:
    text: str

    kind = "string"

    def __str__(self):
        return self.text


@dataclass(frozen=True)
class Sequence:
    """Ordered values, produced by linspace and iterated by for-loops."""
    items: Tuple['Value', ...] = ()

    kind = "sequence"

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


class Null:
    """Result of a call that produces no value."""

    kind = "null"
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "Null"


NULL = Null()

Value = Union[Number, String, Sequence, Null]


def kind_of(value: Value) -> str:
    """Kind name used in error messages."""
    return getattr(value, "kind", type(value).__name__)
