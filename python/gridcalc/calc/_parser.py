"""Value parser: raw cell text -> Value.

Parsing is total.  Text matching none of the structured forms (datetime,
integer, decimal, function call, cell reference) is kept as ``Text``.
"""

from __future__ import annotations

import datetime
import logging
import re

from gridcalc._errors import NumericOverflow, ParseError
from gridcalc._utils import label_to_coordinate
from gridcalc.calc._functions import is_supported
from gridcalc.calc._values import (
    CellReference,
    DateTime,
    Float,
    FormulaCall,
    Integer,
    Null,
    Text,
    Value,
)

logger = logging.getLogger(__name__)

# YYYYMMDD HHMMSS
DATETIME_FORMAT = "%Y%m%d %H%M%S"

# ---------------------------------------------------------------------------
# Literal patterns
# ---------------------------------------------------------------------------

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.[0-9]*|\.[0-9]+)")
_FUNC_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)\s*\(")
_CELL_REF_RE = re.compile(r"\[[A-Za-z0-9]+\]")


# ---------------------------------------------------------------------------
# Parenthesis helpers
# ---------------------------------------------------------------------------


def _find_matching_paren(text: str, start: int) -> int:
    """Index of the ``')'`` matching the ``'('`` at *text[start]*, or -1."""
    depth = 1
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _match_function_call(text: str) -> tuple[str, str] | None:
    """If *text* is exactly ``NAME(balanced_args)``, return ``(name, args_str)``.

    ``ADD(1,2)x`` is NOT matched (trailing content after the close-paren).
    """
    m = _FUNC_RE.match(text)
    if not m:
        return None
    open_idx = m.end() - 1
    close_idx = _find_matching_paren(text, open_idx)
    if close_idx >= 0 and close_idx == len(text) - 1:
        return (m.group(1), text[open_idx + 1 : close_idx])
    return None


def split_top_level_args(args_str: str) -> list[str]:
    """Split on commas at paren depth 0 and trim each argument.

    An empty (or blank) argument string means no arguments; otherwise
    every comma produces a split, so ``"1,"`` gives ``["1", ""]``.
    """
    if not args_str.strip():
        return []
    args: list[str] = []
    depth = 0
    current = ""
    for ch in args_str:
        if ch == '(':
            depth += 1
            current += ch
        elif ch == ')':
            depth -= 1
            current += ch
        elif ch == ',' and depth == 0:
            args.append(current.strip())
            current = ""
        else:
            current += ch
    args.append(current.strip())
    return args


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _parse_datetime(text: str, datetime_format: str) -> DateTime | None:
    try:
        stamp = datetime.datetime.strptime(text, datetime_format)
    except ValueError:
        return None
    # strptime tolerates short fields and loose spacing; only the exact form counts
    if stamp.strftime(datetime_format) != text:
        return None
    return DateTime(stamp, datetime_format)


def _parse_integer(text: str) -> Integer | None:
    if not _INTEGER_RE.fullmatch(text):
        return None
    try:
        return Integer(int(text))
    except NumericOverflow:
        # Too wide for 32 bits: not an integer literal
        return None


def _parse_decimal(text: str) -> Float | None:
    if not _DECIMAL_RE.fullmatch(text):
        return None
    precision = len(text) - text.index('.') - 1
    return Float(float(text), precision)


def parse_value(text: str, datetime_format: str = DATETIME_FORMAT) -> Value:
    """Convert raw cell text into a :class:`Value`.

    Forms are tried in order (first match wins):

    1. Empty string -> ``Null``
    2. Datetime in *datetime_format* -> ``DateTime``
    3. Signed integer -> ``Integer``
    4. Signed decimal with a ``.`` -> ``Float`` (precision = digits after ``.``)
    5. ``NAME(arg, ...)`` with a known NAME -> ``FormulaCall`` (args parsed recursively)
    6. ``[label]`` -> ``CellReference``
    7. Anything else -> ``Text``
    """
    if text == "":
        return Null()

    dt = _parse_datetime(text, datetime_format)
    if dt is not None:
        return dt

    integer = _parse_integer(text)
    if integer is not None:
        return integer

    decimal = _parse_decimal(text)
    if decimal is not None:
        return decimal

    func = _match_function_call(text)
    if func and is_supported(func[0]):
        name, args_str = func
        operands = [parse_value(arg, datetime_format) for arg in split_top_level_args(args_str)]
        return FormulaCall(name, operands)

    if _CELL_REF_RE.fullmatch(text):
        try:
            return CellReference(label_to_coordinate(text))
        except ParseError as e:
            logger.debug("Malformed cell reference %r kept as text: %s", text, e)

    return Text(text)


class ValueParser:
    """Parser bound to a datetime pattern.

    Usage::

        parser = ValueParser()
        parser.parse("ADD([A0],1.50)")
    """

    __slots__ = ("datetime_format",)

    def __init__(self, datetime_format: str = DATETIME_FORMAT) -> None:
        self.datetime_format = datetime_format

    def parse(self, text: str) -> Value:
        return parse_value(text, self.datetime_format)

    def parse_rows(self, rows: list[list[str]]) -> list[list[Value]]:
        """Parse a block of raw text row by row."""
        return [[self.parse(text) for text in row] for row in rows]
