"""Reference index over the non-simple cells of a grid.

Every cell holding a ``FormulaCall`` or ``CellReference`` is a node; the
index records the cells each node reads (``references``, in operand
order) and the reverse edges (``referrers``).  Plain values only ever
appear as edge targets.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from gridcalc._errors import CyclicReference
from gridcalc._utils import Coordinate
from gridcalc.calc._values import Value, all_references

if TYPE_CHECKING:
    from gridcalc._grid import Grid


class DependencyGraph:
    """Which cells each formula cell reads, and which cells read it."""

    __slots__ = ("formulas", "references", "referrers")

    def __init__(self) -> None:
        self.formulas: dict[Coordinate, Value] = {}
        self.references: dict[Coordinate, tuple[Coordinate, ...]] = {}
        self.referrers: dict[Coordinate, set[Coordinate]] = {}

    @classmethod
    def from_grid(cls, grid: Grid) -> DependencyGraph:
        graph = cls()
        for coordinate, value in grid.iter_cells():
            if not value.is_simple:
                graph.add_formula(coordinate, value)
        return graph

    def add_formula(self, coordinate: Coordinate, value: Value) -> None:
        """Index *value* as the stored content of *coordinate*."""
        self.discard(coordinate)
        refs = tuple(all_references(value))
        self.formulas[coordinate] = value
        self.references[coordinate] = refs
        for ref in refs:
            self.referrers.setdefault(ref, set()).add(coordinate)

    def discard(self, coordinate: Coordinate) -> None:
        """Forget *coordinate* as a formula cell; a no-op if it is not one."""
        self.formulas.pop(coordinate, None)
        for ref in self.references.pop(coordinate, ()):
            readers = self.referrers.get(ref)
            if readers is not None:
                readers.discard(coordinate)
                if not readers:
                    del self.referrers[ref]

    def __contains__(self, coordinate: object) -> bool:
        return coordinate in self.formulas

    def __len__(self) -> int:
        return len(self.formulas)

    def __iter__(self) -> Iterator[Coordinate]:
        return iter(sorted(self.formulas))

    def evaluation_order(self, cells: Iterable[Coordinate] | None = None) -> list[Coordinate]:
        """Formula cells ordered so every cell follows the formula cells it reads.

        With *cells*, the result holds those formula cells plus every formula
        cell they transitively read; otherwise it covers the whole index.
        Roots are visited row-major, so the order is deterministic.

        Raises :class:`CyclicReference` with the offending chain, e.g.
        ``A0 -> B0 -> A0``.
        """
        if cells is None:
            roots = sorted(self.formulas)
        else:
            roots = sorted(c for c in set(cells) if c in self.formulas)

        order: list[Coordinate] = []
        done: set[Coordinate] = set()
        for root in roots:
            if root in done:
                continue
            # Depth-first with an explicit stack of reference iterators
            path = [root]
            on_path = {root}
            pending = [iter(self.references[root])]
            while pending:
                for ref in pending[-1]:
                    if ref in on_path:
                        raise CyclicReference(path[path.index(ref):] + [ref])
                    if ref in done or ref not in self.formulas:
                        continue
                    path.append(ref)
                    on_path.add(ref)
                    pending.append(iter(self.references[ref]))
                    break
                else:
                    pending.pop()
                    cell = path.pop()
                    on_path.discard(cell)
                    done.add(cell)
                    order.append(cell)
        return order

    def downstream(self, changed: Iterable[Coordinate]) -> list[Coordinate]:
        """Formula cells whose value can change when *changed* cells change.

        Returned in evaluation order.
        """
        readers: set[Coordinate] = set()
        frontier = list(changed)
        while frontier:
            cell = frontier.pop()
            for reader in self.referrers.get(cell, ()):
                if reader not in readers:
                    readers.add(reader)
                    frontier.append(reader)
        return [c for c in self.evaluation_order(readers) if c in readers]
