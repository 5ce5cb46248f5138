"""
Typed abstract syntax tree for GCAD scripts.

Nodes are immutable once built. Every node records the line and column of the
source text it came from, for error reporting.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from gcad.core.values import String
from gcad.handlers.builtins import Builtin
from gcad.utils.units import Number


@dataclass(frozen=True)
class Node:
    line: int
    column: int


@dataclass(frozen=True)
class Literal(Node):
    value: Union[Number, String]


@dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclass(frozen=True)
class BinaryOp(Node):
    operator: str
    left: 'Expression'
    right: 'Expression'


@dataclass(frozen=True)
class UnaryOp(Node):
    """Prefix negation ('-') or postfix factorial ('!')."""
    operator: str
    operand: 'Expression'


@dataclass(frozen=True)
class Assignment(Node):
    name: str
    value: 'Expression'


@dataclass(frozen=True)
class NamedArgument(Node):
    name: str
    value: 'Expression'


@dataclass(frozen=True)
class FunctionCall(Node):
    """Call of a built-in; arguments keep their source order."""
    name: str
    builtin: Builtin
    arguments: Tuple[Union['Expression', NamedArgument], ...] = ()

    @property
    def positional(self) -> Tuple['Expression', ...]:
        return tuple(arg for arg in self.arguments if not isinstance(arg, NamedArgument))

    @property
    def named(self) -> Tuple[NamedArgument, ...]:
        return tuple(arg for arg in self.arguments if isinstance(arg, NamedArgument))


@dataclass(frozen=True)
class Block(Node):
    statements: Tuple['Statement', ...] = ()


@dataclass(frozen=True)
class ForLoop(Node):
    variable: str
    source: 'Expression'
    body: Block


@dataclass(frozen=True)
class Program(Node):
    statements: Tuple['Statement', ...] = ()
    source_name: Optional[str] = None


Expression = Union[Literal, Identifier, BinaryOp, UnaryOp, Assignment, FunctionCall]
Statement = Union[Expression, ForLoop]
