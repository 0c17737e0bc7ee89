"""Function identifier table and builtin implementations."""

from __future__ import annotations

from typing import Callable

import numpy as np

from gridcalc._errors import DivisionByZero, InvalidOperands, UnknownFunction
from gridcalc.calc._values import Float, Integer, Text, Value, same_form

# ---------------------------------------------------------------------------
# Identifier table: the closed set of names a formula may call.
# Matching is case-sensitive.
# ---------------------------------------------------------------------------

FUNCTION_IDENTIFIERS: dict[str, str] = {
    "ADD": "math",
    "MOD": "math",
    "CONCAT": "text",
}


def is_supported(func_name: str) -> bool:
    """Check if a name is in the function identifier table."""
    return func_name in FUNCTION_IDENTIFIERS


# ---------------------------------------------------------------------------
# Builtin implementations.
# Each takes a list of resolved (simple) operand values.
# ---------------------------------------------------------------------------


def _binary_operands(name: str, args: list[Value]) -> tuple[Value, Value]:
    if len(args) != 2:
        raise InvalidOperands(f"{name} requires exactly 2 arguments, got {len(args)}")
    for arg in args:
        if not arg.is_simple:
            raise InvalidOperands(f"{name}: unresolved operand {arg!r}")
    return args[0], args[1]


def _builtin_add(args: list[Value]) -> Value:
    a, b = same_form(*_binary_operands("ADD", args))
    if isinstance(a, Float):
        with np.errstate(over="ignore"):
            total = a.value + b.value
        # Precision is the wider of the two, never re-derived from the sum
        return Float(total, max(a.precision, b.precision))
    return Integer(a.value + b.value)


def _builtin_mod(args: list[Value]) -> Value:
    a, b = same_form(*_binary_operands("MOD", args))
    if b.value == 0:
        raise DivisionByZero("MOD: division by zero")
    if isinstance(a, Float):
        # Floored modulo: result has the sign of the divisor
        return Float(np.mod(a.value, b.value), max(a.precision, b.precision))
    return Integer(a.value % b.value)


def _builtin_concat(args: list[Value]) -> Value:
    a, b = _binary_operands("CONCAT", args)
    return Text(f"{a}{b}")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_BUILTINS: dict[str, Callable[[list[Value]], Value]] = {
    "ADD": _builtin_add,
    "MOD": _builtin_mod,
    "CONCAT": _builtin_concat,
}


class FunctionRegistry:
    """Lookup of function implementations by identifier.

    The set is closed: it holds exactly the builtins listed in
    :data:`FUNCTION_IDENTIFIERS`.
    """

    __slots__ = ("_functions",)

    def __init__(self) -> None:
        self._functions: dict[str, Callable[[list[Value]], Value]] = dict(_BUILTINS)

    def get(self, name: str) -> Callable[[list[Value]], Value]:
        """Implementation for *name*; raises :class:`UnknownFunction`."""
        try:
            return self._functions[name]
        except KeyError:
            raise UnknownFunction(name) from None

    def has(self, name: str) -> bool:
        return name in self._functions

    def call(self, name: str, args: list[Value]) -> Value:
        return self.get(name)(args)

    @property
    def supported_functions(self) -> frozenset[str]:
        return frozenset(self._functions.keys())
