"""Exception types raised by gridcalc."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gridcalc._utils import Coordinate


class GridCalcError(Exception):
    """Base class for every gridcalc error."""


class ParseError(GridCalcError, ValueError):
    """A structured literal (e.g. a cell label) is syntactically malformed."""


class ShapeError(GridCalcError, ValueError):
    """Grid or patch input is not rectangular."""


class EvalError(GridCalcError):
    """Resolution or apply failure.

    ``origin`` is the grid cell whose resolution (or apply) surfaced the
    error, filled in by region-level operations.
    """

    def __init__(self, message: str, origin: Coordinate | None = None) -> None:
        super().__init__(message)
        self.origin = origin

    def __str__(self) -> str:
        msg = super().__str__()
        if self.origin is not None:
            from gridcalc._utils import coordinate_to_label

            return f"{msg} (at {coordinate_to_label(self.origin)})"
        return msg


class InvalidOperands(EvalError):
    """A function received operands it cannot coerce."""


class OutOfBounds(EvalError, IndexError):
    """A coordinate falls outside the grid."""

    def __init__(
        self,
        coordinate: Coordinate,
        shape: tuple[int, int],
        origin: Coordinate | None = None,
    ) -> None:
        super().__init__(
            f"Coordinate ({coordinate.row}, {coordinate.column}) is outside "
            f"a {shape[0]}x{shape[1]} grid",
            origin,
        )
        self.coordinate = coordinate
        self.shape = shape


class InvalidRange(EvalError):
    """Region corners are not ordered top-left to bottom-right."""


class CyclicReference(EvalError):
    """A reference chain revisits a cell that is still being resolved."""

    def __init__(self, chain: Iterable[Coordinate], origin: Coordinate | None = None) -> None:
        from gridcalc._utils import coordinate_to_label

        self.chain = tuple(chain)
        path = " -> ".join(coordinate_to_label(c) for c in self.chain)
        super().__init__(f"Circular reference detected: {path}", origin)


class UnknownFunction(EvalError):
    """A formula names an identifier with no registered function."""

    def __init__(self, name: str, origin: Coordinate | None = None) -> None:
        super().__init__(f"Unknown function: {name!r}", origin)
        self.name = name


class DivisionByZero(EvalError):
    """MOD was asked to divide by zero."""


class NumericOverflow(EvalError):
    """An integer result does not fit the 32-bit Integer range."""
