"""Coordinate type and label codec.

Labels are column letters followed by row digits.  Columns are bijective
base-26 (``A`` = 0, ``Z`` = 25, ``AA`` = 26); rows are used verbatim, so
``A0`` is the top-left cell and ``B3`` is row 3, column 1.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from gridcalc._errors import ParseError, ShapeError

_LABEL_RE = re.compile(r"\[?([A-Za-z]+)([0-9]+)\]?")


@dataclass(frozen=True, order=True)
class Coordinate:
    """Zero-based (row, column) address within a grid."""

    row: int
    column: int

    def offset(self, rows: int, columns: int) -> Coordinate:
        return Coordinate(self.row + rows, self.column + columns)

    def __str__(self) -> str:
        return coordinate_to_label(self)


def column_index(letters: str) -> int:
    """``"A"`` -> 0, ``"Z"`` -> 25, ``"AA"`` -> 26 (case-insensitive)."""
    if not letters or not letters.isascii() or not letters.isalpha():
        raise ParseError(f"Invalid column letters: {letters!r}")
    result = 0
    for ch in letters.upper():
        result = result * 26 + (ord(ch) - ord("A") + 1)
    return result - 1


def column_letters(index: int) -> str:
    """Inverse of :func:`column_index`."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    letters = ""
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def label_to_coordinate(label: str) -> Coordinate:
    """Decode ``"ZA62"`` (or ``"[za62]"``) into a :class:`Coordinate`.

    Raises :class:`ParseError` when the label is not letters followed by
    digits, or has an unmatched bracket.
    """
    m = _LABEL_RE.fullmatch(label)
    if not m or label.startswith("[") != label.endswith("]"):
        raise ParseError(f"Invalid cell label: {label!r}")
    return Coordinate(row=int(m.group(2)), column=column_index(m.group(1)))


def coordinate_to_label(coordinate: Coordinate, bracketed: bool = False) -> str:
    """Encode a coordinate as ``"B3"`` (or ``"[B3]"``)."""
    if coordinate.row < 0:
        raise ValueError(f"Row must be non-negative, got {coordinate.row}")
    label = f"{column_letters(coordinate.column)}{coordinate.row}"
    return f"[{label}]" if bracketed else label


def block_shape(rows: Sequence[Sequence[object]]) -> tuple[int, int]:
    """``(n_rows, n_cols)`` of a rectangular block; raises ShapeError if ragged."""
    if len(rows) == 0:
        return (0, 0)
    n_cols = len(rows[0])
    for i, row in enumerate(rows):
        if len(row) != n_cols:
            raise ShapeError(
                f"Row {i} has {len(row)} cells, expected {n_cols} (input must be rectangular)"
            )
    return (len(rows), n_cols)
