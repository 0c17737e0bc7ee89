"""gridcalc: a minimal spreadsheet evaluation core.

Usage::

    from gridcalc import Coordinate, Grid, Integer

    grid = Grid.from_text([
        ["3"],
        ["ADD([A0],[A0])"],
        ["ADD([A1],[A0])"],
    ])
    region = grid.resolve_region(Coordinate(0, 0), Coordinate(2, 0))
    print(region.as_strings())  # [['3'], ['6'], ['9']]

    # Add 2 to every cell of the first column, in place
    grid.apply(Coordinate(0, 0), "ADD", [[Integer(2)]] * 3)
"""

from __future__ import annotations

from gridcalc._errors import (
    CyclicReference,
    DivisionByZero,
    EvalError,
    GridCalcError,
    InvalidOperands,
    InvalidRange,
    NumericOverflow,
    OutOfBounds,
    ParseError,
    ShapeError,
    UnknownFunction,
)
from gridcalc._grid import Grid
from gridcalc._utils import Coordinate, coordinate_to_label, label_to_coordinate
from gridcalc.calc import (
    CellReference,
    DateTime,
    Float,
    FormulaCall,
    Integer,
    Null,
    Text,
    Value,
    parse_value,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CellReference",
    "Coordinate",
    "CyclicReference",
    "DateTime",
    "DivisionByZero",
    "EvalError",
    "Float",
    "FormulaCall",
    "Grid",
    "GridCalcError",
    "Integer",
    "InvalidOperands",
    "InvalidRange",
    "Null",
    "NumericOverflow",
    "OutOfBounds",
    "ParseError",
    "ShapeError",
    "Text",
    "UnknownFunction",
    "Value",
    "coordinate_to_label",
    "label_to_coordinate",
    "load_grid",
    "parse_value",
]


def load_grid(rows: list[list[str]], datetime_format: str | None = None) -> Grid:
    """Build a Grid from a rectangular block of raw cell text.

    Parameters
    ----------
    rows : list[list[str]]
        Row-major cell text; every row must have the same length.
    datetime_format : str, optional
        strptime pattern for datetime cells.  Defaults to
        ``"%Y%m%d %H%M%S"``.
    """
    if datetime_format is None:
        return Grid.from_text(rows)
    return Grid.from_text(rows, datetime_format)
