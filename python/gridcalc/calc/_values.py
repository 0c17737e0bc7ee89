"""Cell value variants, display rules and numeric coercion."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field

import numpy as np

from gridcalc._errors import InvalidOperands, NumericOverflow
from gridcalc._utils import Coordinate, coordinate_to_label

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# Pattern used by the DateTime default value.
DEFAULT_DISPLAY_FORMAT = "%Y%m%d"


def to_float32(value: float) -> np.float32:
    """Cast to single precision; out-of-range magnitudes become +/-inf."""
    with np.errstate(over="ignore"):
        return np.float32(value)


class Value:
    """Base of the closed set of things a cell can hold."""

    __slots__ = ()

    @property
    def is_simple(self) -> bool:
        """False only for FormulaCall and CellReference."""
        return True


@dataclass(frozen=True)
class Null(Value):
    """Empty cell."""

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class Integer(Value):
    """Signed 32-bit integer; construction outside that range fails."""

    value: int

    def __post_init__(self) -> None:
        if not INT32_MIN <= self.value <= INT32_MAX:
            raise NumericOverflow(f"Integer {self.value} overflows 32 bits")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Float(Value):
    """Single-precision number carrying its display precision.

    ``precision`` is the number of fractional digits shown and propagated;
    it is never inferred from the number itself.
    """

    value: np.float32
    precision: int = 0

    def __post_init__(self) -> None:
        if self.precision < 0:
            raise ValueError(f"precision must be non-negative, got {self.precision}")
        object.__setattr__(self, "value", to_float32(self.value))

    def __str__(self) -> str:
        return f"{float(self.value):.{self.precision}f}"


@dataclass(frozen=True)
class Text(Value):
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class DateTime(Value):
    """Naive timestamp with the strftime pattern used to display it."""

    value: datetime.datetime
    format: str = DEFAULT_DISPLAY_FORMAT

    def __str__(self) -> str:
        return self.value.strftime(self.format)


@dataclass(frozen=True)
class FormulaCall(Value):
    """``NAME(arg, ...)``; operands are unresolved Values of any variant."""

    function: str
    operands: tuple[Value, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "operands", tuple(self.operands))

    @property
    def is_simple(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self.function}({','.join(str(v) for v in self.operands)})"


@dataclass(frozen=True)
class CellReference(Value):
    coordinate: Coordinate

    @property
    def is_simple(self) -> bool:
        return False

    def __str__(self) -> str:
        return coordinate_to_label(self.coordinate, bracketed=True)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

_DEFAULTS: dict[type[Value], Value] = {
    Null: Null(),
    Integer: Integer(0),
    Float: Float(0.0, 0),
    Text: Text(""),
    DateTime: DateTime(datetime.datetime.min, DEFAULT_DISPLAY_FORMAT),
}


def default_of(kind: type[Value]) -> Value:
    """Zero value of a simple variant, e.g. ``default_of(Float)``."""
    try:
        return _DEFAULTS[kind]
    except KeyError:
        raise TypeError(f"No default value for {kind.__name__}") from None


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def _to_float(value: Value) -> Float:
    if isinstance(value, Float):
        return value
    if isinstance(value, Integer):
        return Float(value.value, 0)
    raise InvalidOperands(f"Cannot convert {value!r} to Float")


def same_form(a: Value, b: Value) -> tuple[Integer, Integer] | tuple[Float, Float]:
    """Bring two operands to a common numeric variant.

    If either side is a Float both become Floats (an Integer converts with
    precision 0); otherwise both must already be Integers.
    """
    if isinstance(a, Float) or isinstance(b, Float):
        return _to_float(a), _to_float(b)
    if isinstance(a, Integer) and isinstance(b, Integer):
        return a, b
    raise InvalidOperands(f"Not valid datatypes for arithmetic: {a!r}, {b!r}")


# ---------------------------------------------------------------------------
# Reference extraction
# ---------------------------------------------------------------------------


def all_references(value: Value) -> list[Coordinate]:
    """Every coordinate a value reads, depth-first, without duplicates."""
    refs: list[Coordinate] = []
    seen: set[Coordinate] = set()
    stack: list[Value] = [value]
    while stack:
        current = stack.pop()
        if isinstance(current, CellReference):
            if current.coordinate not in seen:
                refs.append(current.coordinate)
                seen.add(current.coordinate)
        elif isinstance(current, FormulaCall):
            # Reversed so operands pop left to right
            stack.extend(reversed(current.operands))
    return refs
