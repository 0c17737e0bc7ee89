"""Result containers: resolved regions and apply deltas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from gridcalc._utils import Coordinate
from gridcalc.calc._values import Value


@dataclass
class Region:
    """A resolved rectangle of values, row-major, preserving its 2D shape."""

    values: list[Value]
    n_rows: int
    n_cols: int

    def get(self, row: int, col: int) -> Value:
        """Value at zero-based (row, col) within the region."""
        if not (0 <= row < self.n_rows and 0 <= col < self.n_cols):
            raise IndexError(f"({row}, {col}) is outside a {self.n_rows}x{self.n_cols} region")
        return self.values[row * self.n_cols + col]

    def row(self, row: int) -> list[Value]:
        start = row * self.n_cols
        return self.values[start:start + self.n_cols]

    def column(self, col: int) -> list[Value]:
        return [self.values[r * self.n_cols + col] for r in range(self.n_rows)]

    def as_lists(self) -> list[list[Value]]:
        return [self.row(r) for r in range(self.n_rows)]

    def as_strings(self) -> list[list[str]]:
        """Display text of every value, in the same shape."""
        return [[str(v) for v in self.row(r)] for r in range(self.n_rows)]

    def __iter__(self) -> Iterator[Value]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class CellDelta:
    """One cell whose resolved value differs before and after an apply."""

    coordinate: Coordinate
    old_value: Value
    new_value: Value
    formula: Value | None = None  # stored non-simple value, for downstream cells


@dataclass(frozen=True)
class RecalcResult:
    """What an apply at ``start`` changed, patched cells first."""

    function: str
    start: Coordinate
    patched: tuple[Coordinate, ...]
    deltas: tuple[CellDelta, ...]

    @property
    def changed(self) -> tuple[Coordinate, ...]:
        return tuple(d.coordinate for d in self.deltas)

    @property
    def propagated(self) -> tuple[CellDelta, ...]:
        """Deltas of cells outside the patched rectangle."""
        patched = set(self.patched)
        return tuple(d for d in self.deltas if d.coordinate not in patched)

    def delta(self, coordinate: Coordinate) -> CellDelta | None:
        for d in self.deltas:
            if d.coordinate == coordinate:
                return d
        return None
