"""Grid: fixed-size rectangular store of cell Values.

Supports ``grid['A0']`` / ``grid[Coordinate(0, 0)]`` access, resolved
region views and in-place region apply.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Union

import numpy as np

from gridcalc._errors import OutOfBounds, ShapeError
from gridcalc._utils import Coordinate, block_shape, label_to_coordinate
from gridcalc.calc._evaluator import apply_region, resolve_cell, resolve_region
from gridcalc.calc._parser import DATETIME_FORMAT, ValueParser
from gridcalc.calc._protocol import Region
from gridcalc.calc._values import CellReference, Null, Value

CellKey = Union[str, Coordinate]


class Grid:
    """Row-major grid of Values with dimensions fixed at construction.

    Usage::

        grid = Grid.from_text([["3"], ["ADD([A0],[A0])"]])
        grid.resolve_region(Coordinate(0, 0), Coordinate(1, 0)).as_strings()
        # [['3'], ['6']]
        grid.apply(Coordinate(0, 0), "ADD", [[Integer(2)]])
    """

    __slots__ = ("_data",)

    def __init__(self, n_rows: int, n_cols: int) -> None:
        """Create an ``n_rows`` x ``n_cols`` grid of ``Null`` cells."""
        if n_rows < 0 or n_cols < 0:
            raise ShapeError(f"Grid dimensions must be non-negative, got {n_rows}x{n_cols}")
        self._data = np.empty((n_rows, n_cols), dtype=object)
        self._data.fill(Null())

    @classmethod
    def from_text(
        cls,
        rows: Sequence[Sequence[str]],
        datetime_format: str = DATETIME_FORMAT,
    ) -> Grid:
        """Parse a rectangular block of raw cell text into a grid."""
        n_rows, n_cols = block_shape(rows)
        parser = ValueParser(datetime_format)
        grid = cls(n_rows, n_cols)
        for r, row in enumerate(rows):
            for c, text in enumerate(row):
                grid._data[r, c] = parser.parse(text)
        return grid

    @classmethod
    def from_values(cls, rows: Sequence[Sequence[Value]]) -> Grid:
        """Build a grid from already-parsed Values."""
        n_rows, n_cols = block_shape(rows)
        grid = cls(n_rows, n_cols)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                grid._data[r, c] = value
        return grid

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    @property
    def shape(self) -> tuple[int, int]:
        return (self._data.shape[0], self._data.shape[1])

    @property
    def n_rows(self) -> int:
        return self._data.shape[0]

    @property
    def n_cols(self) -> int:
        return self._data.shape[1]

    def in_bounds(self, coordinate: Coordinate) -> bool:
        return 0 <= coordinate.row < self.n_rows and 0 <= coordinate.column < self.n_cols

    def check_bounds(self, coordinate: Coordinate) -> None:
        if not self.in_bounds(coordinate):
            raise OutOfBounds(coordinate, self.shape)

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def __getitem__(self, key: CellKey) -> Value:
        """``grid['B3']`` or ``grid[Coordinate(3, 1)]`` -> stored Value."""
        coordinate = label_to_coordinate(key) if isinstance(key, str) else key
        self.check_bounds(coordinate)
        return self._data[coordinate.row, coordinate.column]

    def iter_rows(self) -> Iterator[tuple[Value, ...]]:
        """Yield each row of stored Values as a tuple."""
        for r in range(self.n_rows):
            yield tuple(self._data[r])

    def iter_cells(self) -> Iterator[tuple[Coordinate, Value]]:
        """Yield ``(coordinate, value)`` for every cell, row-major."""
        for r in range(self.n_rows):
            for c in range(self.n_cols):
                yield Coordinate(r, c), self._data[r, c]

    def to_lists(self) -> list[list[Value]]:
        return [list(row) for row in self.iter_rows()]

    def copy(self) -> Grid:
        grid = object.__new__(Grid)
        grid._data = self._data.copy()
        return grid

    def write_block(self, start: Coordinate, block: Sequence[Sequence[Value]]) -> None:
        """Overwrite the rectangle starting at *start* with *block*, as stored.

        Values are written without resolution.  Raises :class:`ShapeError`
        for a ragged block and :class:`OutOfBounds` when it does not fit.
        """
        n_rows, n_cols = block_shape(block)
        if n_rows == 0 or n_cols == 0:
            return
        self.check_bounds(start)
        self.check_bounds(start.offset(n_rows - 1, n_cols - 1))
        for i, row in enumerate(block):
            for j, value in enumerate(row):
                self._data[start.row + i, start.column + j] = value

    # ------------------------------------------------------------------
    # Resolution and apply (implemented in gridcalc.calc)
    # ------------------------------------------------------------------

    def resolve_cell(self, key: CellKey) -> Value:
        """Resolve the stored value at *key* to a simple Value."""
        coordinate = label_to_coordinate(key) if isinstance(key, str) else key
        self.check_bounds(coordinate)
        return resolve_cell(CellReference(coordinate), self)

    def resolve_region(self, top_left: Coordinate, bottom_right: Coordinate) -> Region:
        return resolve_region(self, top_left, bottom_right)

    def apply(
        self,
        start: Coordinate,
        function_name: str,
        patch: Sequence[Sequence[Value]] | Region,
    ) -> None:
        """Replace each cell of the patched rectangle with *function_name*(cell, patch)."""
        apply_region(self, start, function_name, patch)

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.shape == other.shape and self.to_lists() == other.to_lists()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<Grid {self.n_rows}x{self.n_cols}>"
