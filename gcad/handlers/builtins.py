"""
Declared schemas for the closed set of built-in functions.

Call sites are resolved to a Builtin member when the AST is built, so an unknown
function name or a malformed call shape fails before any statement executes.
Argument values are checked against each parameter's kind when the call runs.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

from gcad.core.values import String, Value, kind_of
from gcad.utils.errors import BindingError, ScriptRuntimeError, ScriptTypeError
from gcad.utils.units import MAX_INTEGER_BITS, Number


class ParamKind(Enum):
    LENGTH = "length"
    NUMBER = "number"
    STRING = "string"
    QUANTITY = "number or length"


@dataclass(frozen=True)
class Parameter:
    name: str
    kind: ParamKind
    required: bool = True
    default: Any = None


@dataclass(frozen=True)
class FunctionSchema:
    """Name and ordered parameter slots of a built-in function."""
    name: str
    parameters: Tuple[Parameter, ...] = ()

    def parameter(self, name: str) -> Optional[Parameter]:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    def check_call(self, positional_count: int, named: Iterable[str]) -> Dict[str, int]:
        """
        Validate the shape of a call against this schema.

        Positional arguments fill slots in declared order, then named arguments
        fill the remaining slots. A slot may be filled only once.

        Args:
            positional_count: Number of positional arguments
            named: Names of named arguments in source order

        Returns:
            Mapping of parameter name to argument index; positional arguments
            come first, named arguments follow in source order

        Raises:
            BindingError: too many positionals, unknown or repeated names,
                or a required parameter left unfilled
        """
        if positional_count > len(self.parameters):
            raise BindingError(
                f"{self.name}() takes at most {len(self.parameters)} positional "
                f"arguments but {positional_count} were given")

        slots = {}
        for index in range(positional_count):
            slots[self.parameters[index].name] = index

        for offset, name in enumerate(named):
            if self.parameter(name) is None:
                raise BindingError(f"{self.name}() has no parameter named '{name}'")
            if name in slots:
                raise BindingError(f"{self.name}() got multiple values for parameter '{name}'")
            slots[name] = positional_count + offset

        missing = [p.name for p in self.parameters if p.required and p.name not in slots]
        if missing:
            raise BindingError(
                f"{self.name}() missing required parameter(s): {', '.join(missing)}")

        return slots

    def bind(self, positional: Sequence[Value],
             named: Sequence[Tuple[str, Value]]) -> Dict[str, Any]:
        """Bind evaluated arguments to parameters, converting each by kind."""
        slots = self.check_call(len(positional), [name for name, _ in named])
        values = list(positional) + [value for _, value in named]

        bound = {}
        for parameter in self.parameters:
            if parameter.name in slots:
                bound[parameter.name] = self._convert(parameter, values[slots[parameter.name]])
            else:
                bound[parameter.name] = parameter.default
        return bound

    def _convert(self, parameter: Parameter, value: Value) -> Any:
        kind = parameter.kind
        if kind == ParamKind.STRING and isinstance(value, String):
            return value.text
        if isinstance(value, Number):
            if isinstance(value.value, int) and value.value.bit_length() > MAX_INTEGER_BITS:
                raise ScriptRuntimeError(
                    f"{self.name}(): parameter '{parameter.name}' is out of range")
            if kind == ParamKind.LENGTH and value.is_length:
                return float(value.value)
            if kind == ParamKind.NUMBER and not value.is_length:
                return value.value
            if kind == ParamKind.QUANTITY:
                return value

        raise ScriptTypeError(
            f"{self.name}(): parameter '{parameter.name}' must be a {kind.value}, "
            f"got {kind_of(value)}")


_LENGTH = ParamKind.LENGTH
_NUMBER = ParamKind.NUMBER
_STRING = ParamKind.STRING


def _schema(name: str, *parameters: Parameter) -> FunctionSchema:
    return FunctionSchema(name, tuple(parameters))


def _optional(name: str, kind: ParamKind, default: Any = None) -> Parameter:
    return Parameter(name, kind, required=False, default=default)


class Builtin(Enum):
    # Machining state
    CUTTER_DIAMETER = _schema("cutter_diameter", Parameter("diameter", _LENGTH))
    MATERIAL = _schema("material", Parameter("name", _STRING))
    DEFINE_MATERIAL = _schema(
        "define_material",
        Parameter("name", _STRING),
        Parameter("stepover", _NUMBER),
        Parameter("stepdown", _LENGTH),
        Parameter("feed_rate", _NUMBER),
        Parameter("plunge_rate", _NUMBER),
        Parameter("rpm", _NUMBER),
    )
    RPM = _schema("rpm", Parameter("speed", _NUMBER))

    # Program annotations
    COMMENT = _schema("comment", Parameter("text", _STRING))
    DWELL = _schema("dwell", Parameter("seconds", _NUMBER))

    # Machining operations
    CIRCLE_POCKET = _schema(
        "circle_pocket",
        Parameter("x", _LENGTH),
        Parameter("y", _LENGTH),
        _optional("radius", _LENGTH),
        Parameter("depth", _LENGTH),
        _optional("diameter", _LENGTH),
    )
    DRILL = _schema(
        "drill",
        Parameter("x", _LENGTH),
        Parameter("y", _LENGTH),
        Parameter("depth", _LENGTH),
        _optional("peck", _LENGTH),
    )
    GROOVE = _schema(
        "groove",
        Parameter("x1", _LENGTH),
        Parameter("y1", _LENGTH),
        _optional("x2", _LENGTH),
        _optional("y2", _LENGTH),
        Parameter("depth", _LENGTH),
        _optional("up", _LENGTH),
    )
    CONTOUR_LINE = _schema(
        "contour_line",
        Parameter("x1", _LENGTH),
        Parameter("y1", _LENGTH),
        _optional("x2", _LENGTH),
        _optional("y2", _LENGTH),
        Parameter("depth", _LENGTH),
        _optional("up", _LENGTH),
    )
    ARC_GROOVE = _schema(
        "arc_groove",
        Parameter("x", _LENGTH),
        Parameter("y", _LENGTH),
        Parameter("radius", _LENGTH),
        Parameter("start_angle", _NUMBER),
        Parameter("end_angle", _NUMBER),
        Parameter("depth", _LENGTH),
    )
    GROOVE_POCKET = _schema(
        "groove_pocket",
        Parameter("x", _LENGTH),
        Parameter("y", _LENGTH),
        Parameter("width", _LENGTH),
        Parameter("height", _LENGTH),
        Parameter("depth", _LENGTH),
    )

    # Pure utilities
    LINSPACE = _schema(
        "linspace",
        Parameter("start", ParamKind.QUANTITY),
        Parameter("stop", ParamKind.QUANTITY),
        Parameter("count", _NUMBER),
    )

    # Work transformation
    SCALE = _schema("scale", Parameter("x", _NUMBER), _optional("y", _NUMBER))
    TRANSLATE = _schema("translate", Parameter("x", _LENGTH), Parameter("y", _LENGTH))
    RESET_TRANSFORM = _schema("reset_transform")

    @property
    def schema(self) -> FunctionSchema:
        return self.value

    @classmethod
    def lookup(cls, name: str) -> Optional['Builtin']:
        return _BUILTINS_BY_NAME.get(name)


_BUILTINS_BY_NAME = {builtin.schema.name: builtin for builtin in Builtin}
