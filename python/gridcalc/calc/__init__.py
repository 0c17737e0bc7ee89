"""gridcalc.calc - Value parsing, resolution and region apply for gridcalc grids."""

from gridcalc.calc._evaluator import GridEvaluator, apply_region, resolve_cell, resolve_region
from gridcalc.calc._functions import FUNCTION_IDENTIFIERS, FunctionRegistry, is_supported
from gridcalc.calc._graph import DependencyGraph
from gridcalc.calc._parser import DATETIME_FORMAT, ValueParser, parse_value
from gridcalc.calc._protocol import CellDelta, RecalcResult, Region
from gridcalc.calc._values import (
    CellReference,
    DateTime,
    Float,
    FormulaCall,
    Integer,
    Null,
    Text,
    Value,
    all_references,
    default_of,
    same_form,
)

__all__ = [
    "CellDelta",
    "CellReference",
    "DATETIME_FORMAT",
    "DateTime",
    "DependencyGraph",
    "FUNCTION_IDENTIFIERS",
    "Float",
    "FormulaCall",
    "FunctionRegistry",
    "GridEvaluator",
    "Integer",
    "Null",
    "RecalcResult",
    "Region",
    "Text",
    "Value",
    "ValueParser",
    "all_references",
    "apply_region",
    "default_of",
    "is_supported",
    "parse_value",
    "resolve_cell",
    "resolve_region",
    "same_form",
]
