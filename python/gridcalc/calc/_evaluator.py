"""Resolver: reduces formula calls and cell references to simple Values.

A ``CellReference`` resolves to whatever the referenced cell resolves to;
a ``FormulaCall`` resolves its operands depth-first, left to right, then
dispatches to the function registry.  Resolution walks an explicit stack
rather than recursing, so chain length is bounded only by grid size.  The
cells currently being resolved are tracked so that a reference cycle
fails with ``CyclicReference``; finished cells are memoized for the rest
of the call, which keeps region-wide resolution linear.

Neither ``resolve_cell`` nor ``resolve_region`` mutates the grid;
``apply_region`` is the only writer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from gridcalc._errors import CyclicReference, EvalError, InvalidRange, OutOfBounds
from gridcalc._utils import Coordinate, block_shape
from gridcalc.calc._functions import FunctionRegistry
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._protocol import CellDelta, RecalcResult, Region
from gridcalc.calc._values import CellReference, Float, FormulaCall, Value

if TYPE_CHECKING:
    from gridcalc._grid import Grid

logger = logging.getLogger(__name__)

_DEFAULT_FUNCTIONS = FunctionRegistry()


# ---------------------------------------------------------------------------
# Core resolution
# ---------------------------------------------------------------------------


class _CallFrame:
    """A FormulaCall whose operands are still being resolved."""

    __slots__ = ("call", "args")

    def __init__(self, call: FormulaCall) -> None:
        self.call = call
        self.args: list[Value] = []


def _resolve(
    value: Value,
    grid: Grid,
    functions: FunctionRegistry,
    cache: dict[Coordinate, Value],
) -> Value:
    """Resolve *value*; resolved cells are stored in *cache*.

    The stack holds ``_CallFrame``s and the coordinates of cells whose
    stored value is being resolved; ``path`` is the cell chain, outermost
    first.
    """
    stack: list[_CallFrame | Coordinate] = []
    path: list[Coordinate] = []
    on_path: set[Coordinate] = set()
    todo = value

    while True:
        if isinstance(todo, CellReference):
            coordinate = todo.coordinate
            grid.check_bounds(coordinate)
            if coordinate in cache:
                result = cache[coordinate]
            elif coordinate in on_path:
                raise CyclicReference(path[path.index(coordinate):] + [coordinate])
            else:
                stack.append(coordinate)
                path.append(coordinate)
                on_path.add(coordinate)
                todo = grid[coordinate]
                continue
        elif isinstance(todo, FormulaCall) and todo.operands:
            stack.append(_CallFrame(todo))
            todo = todo.operands[0]
            continue
        elif isinstance(todo, FormulaCall):
            result = functions.get(todo.function)([])
        else:
            result = todo

        # Hand the result up until some call still has operands left
        while stack:
            top = stack[-1]
            if isinstance(top, Coordinate):
                stack.pop()
                path.pop()
                on_path.discard(top)
                cache[top] = result
                continue
            top.args.append(result)
            if len(top.args) < len(top.call.operands):
                todo = top.call.operands[len(top.args)]
                break
            stack.pop()
            result = functions.get(top.call.function)(top.args)
        else:
            return result


def resolve_cell(
    value: Value,
    grid: Grid,
    functions: FunctionRegistry | None = None,
) -> Value:
    """Reduce *value* against *grid* to a simple Value.

    Simple values are returned unchanged.  Raises :class:`OutOfBounds`,
    :class:`CyclicReference`, :class:`UnknownFunction` or whatever the
    dispatched function raises.
    """
    return _resolve(value, grid, functions or _DEFAULT_FUNCTIONS, {})


def _resolve_at(
    coordinate: Coordinate,
    grid: Grid,
    functions: FunctionRegistry,
    cache: dict[Coordinate, Value],
) -> Value:
    """Resolve the stored value of an in-bounds cell, tagging errors with it."""
    try:
        return _resolve(CellReference(coordinate), grid, functions, cache)
    except EvalError as e:
        if e.origin is None:
            e.origin = coordinate
        logger.debug("Cannot resolve %s: %s", coordinate, e)
        raise


def _resolve_cells(
    grid: Grid,
    cells: Iterable[Coordinate],
    functions: FunctionRegistry,
) -> dict[Coordinate, Value]:
    cache: dict[Coordinate, Value] = {}
    return {c: _resolve_at(c, grid, functions, cache) for c in cells}


def resolve_region(
    grid: Grid,
    top_left: Coordinate,
    bottom_right: Coordinate,
    functions: FunctionRegistry | None = None,
) -> Region:
    """Resolve every cell of the inclusive rectangle into a fresh Region."""
    grid.check_bounds(top_left)
    grid.check_bounds(bottom_right)
    if top_left.row > bottom_right.row or top_left.column > bottom_right.column:
        raise InvalidRange(
            f"Range {top_left}:{bottom_right} is not ordered top-left to bottom-right"
        )

    cells = [
        Coordinate(r, c)
        for r in range(top_left.row, bottom_right.row + 1)
        for c in range(top_left.column, bottom_right.column + 1)
    ]
    resolved = _resolve_cells(grid, cells, functions or _DEFAULT_FUNCTIONS)
    return Region(
        values=[resolved[c] for c in cells],
        n_rows=bottom_right.row - top_left.row + 1,
        n_cols=bottom_right.column - top_left.column + 1,
    )


# ---------------------------------------------------------------------------
# Region apply
# ---------------------------------------------------------------------------


def _patch_rows(patch: Sequence[Sequence[Value]] | Region) -> Sequence[Sequence[Value]]:
    if isinstance(patch, Region):
        return patch.as_lists()
    return patch


def apply_region(
    grid: Grid,
    start: Coordinate,
    function_name: str,
    patch: Sequence[Sequence[Value]] | Region,
    functions: FunctionRegistry | None = None,
) -> None:
    """Combine a grid rectangle with *patch* element-wise, in place.

    ``grid[start + (i, j)] = function(grid[start + (i, j)], patch[i][j])``
    for every patch position.  Both operands are resolved first.  Every
    result is computed against the unmodified grid before any cell is
    written, so on error the grid is left untouched.
    """
    rows = _patch_rows(patch)
    n_rows, n_cols = block_shape(rows)
    if n_rows == 0 or n_cols == 0:
        return

    funcs = functions or _DEFAULT_FUNCTIONS
    func = funcs.get(function_name)

    end = start.offset(n_rows - 1, n_cols - 1)
    for corner in (start, end):
        if not grid.in_bounds(corner):
            raise OutOfBounds(corner, grid.shape)

    cache: dict[Coordinate, Value] = {}
    results: list[list[Value]] = []
    for i in range(n_rows):
        out_row: list[Value] = []
        for j in range(n_cols):
            target = start.offset(i, j)
            current = _resolve_at(target, grid, funcs, cache)
            try:
                operand = _resolve(rows[i][j], grid, funcs, cache)
                out_row.append(func([current, operand]))
            except EvalError as e:
                if e.origin is None:
                    e.origin = target
                raise
        results.append(out_row)

    grid.write_block(start, results)
    logger.debug("Applied %s to %dx%d region at %s", function_name, n_rows, n_cols, start)


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


def _values_differ(a: Value, b: Value, tolerance: float) -> bool:
    """Check if two resolved values differ beyond tolerance."""
    if isinstance(a, Float) and isinstance(b, Float):
        return a.precision != b.precision or abs(float(a.value) - float(b.value)) > tolerance
    return a != b


class GridEvaluator:
    """Evaluates every formula cell of a Grid and tracks applies.

    Usage::

        evaluator = GridEvaluator()
        evaluator.load(grid)
        results = evaluator.calculate()
        recalc = evaluator.recalculate(Coordinate(0, 0), "ADD", [[Integer(2)]])
    """

    def __init__(self) -> None:
        self._grid: Grid | None = None
        self._graph = DependencyGraph()
        self._functions = FunctionRegistry()

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def load(self, grid: Grid) -> None:
        """Scan the grid and build its dependency graph."""
        self._grid = grid
        self._graph = DependencyGraph.from_grid(grid)

    def _require_grid(self) -> Grid:
        if self._grid is None:
            raise RuntimeError("Call load() before evaluating")
        return self._grid

    def calculate(self) -> dict[Coordinate, Value]:
        """Resolve all formula cells in evaluation order.

        Returns a dict of coordinate -> resolved value for formula cells.
        """
        grid = self._require_grid()
        return _resolve_cells(grid, self._graph.evaluation_order(), self._functions)

    def recalculate(
        self,
        start: Coordinate,
        function_name: str,
        patch: Sequence[Sequence[Value]] | Region,
        tolerance: float = 1e-6,
    ) -> RecalcResult:
        """Apply *patch* at *start* and report which resolved cells changed.

        Only the patched cells and the formula cells downstream of them are
        resolved, before and after the apply.
        """
        grid = self._require_grid()
        rows = _patch_rows(patch)
        n_rows, n_cols = block_shape(rows)
        patched = [start.offset(i, j) for i in range(n_rows) for j in range(n_cols)]

        patched_set = set(patched)
        downstream = [c for c in self._graph.downstream(patched) if c not in patched_set]
        watched = [c for c in patched if grid.in_bounds(c)] + downstream
        formulas = self._graph.formulas
        before = _resolve_cells(grid, watched, self._functions)

        apply_region(grid, start, function_name, rows, self._functions)
        # Apply results are simple, so patched cells leave the index
        for coordinate in patched:
            self._graph.discard(coordinate)
        after = _resolve_cells(grid, watched, self._functions)

        deltas = tuple(
            CellDelta(
                coordinate=c,
                old_value=before[c],
                new_value=after[c],
                formula=formulas.get(c) if c in downstream else None,
            )
            for c in watched
            if _values_differ(before[c], after[c], tolerance)
        )
        return RecalcResult(
            function=function_name,
            start=start,
            patched=tuple(patched),
            deltas=deltas,
        )
