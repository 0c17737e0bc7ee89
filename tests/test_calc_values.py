"""Tests for gridcalc value variants, display and coercion."""

from __future__ import annotations

import datetime

import numpy as np
import pytest

from gridcalc._errors import InvalidOperands, NumericOverflow
from gridcalc._utils import Coordinate
from gridcalc.calc._values import (
    INT32_MAX,
    INT32_MIN,
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


class TestDisplay:
    def test_null_is_empty(self) -> None:
        assert str(Null()) == ""

    def test_integer(self) -> None:
        assert str(Integer(-5)) == "-5"

    def test_float_uses_stored_precision(self) -> None:
        assert str(Float(2.041, 2)) == "2.04"
        assert str(Float(3.0, 0)) == "3"
        assert str(Float(1.03, 4)) == "1.0300"

    def test_text(self) -> None:
        assert str(Text("hello")) == "hello"

    def test_datetime_uses_its_pattern(self) -> None:
        stamp = datetime.datetime(2024, 3, 15, 14, 25)
        assert str(DateTime(stamp, "%Y %m %d %H:%M")) == "2024 03 15 14:25"

    def test_reference(self) -> None:
        assert str(CellReference(Coordinate(3, 1))) == "[B3]"

    def test_formula(self) -> None:
        call = FormulaCall("ADD", [Integer(1), CellReference(Coordinate(0, 0))])
        assert str(call) == "ADD(1,[A0])"


class TestVariants:
    def test_float_is_single_precision(self) -> None:
        assert isinstance(Float(1.5, 1).value, np.float32)

    def test_float_equality(self) -> None:
        assert Float(3.4, 2) == Float(3.40, 2)
        assert Float(3.4, 2) != Float(3.4, 1)

    def test_negative_precision_rejected(self) -> None:
        with pytest.raises(ValueError):
            Float(1.0, -1)

    def test_integer_range(self) -> None:
        assert Integer(INT32_MAX).value == INT32_MAX
        assert Integer(INT32_MIN).value == INT32_MIN
        with pytest.raises(NumericOverflow):
            Integer(INT32_MAX + 1)

    def test_formula_operands_stored_as_tuple(self) -> None:
        call = FormulaCall("ADD", [Integer(1), Integer(2)])
        assert call.operands == (Integer(1), Integer(2))
        assert hash(call) == hash(FormulaCall("ADD", (Integer(1), Integer(2))))

    def test_is_simple(self) -> None:
        assert Null().is_simple
        assert Text("x").is_simple
        assert not FormulaCall("ADD").is_simple
        assert not CellReference(Coordinate(0, 0)).is_simple


class TestDefaults:
    def test_defaults(self) -> None:
        assert default_of(Null) == Null()
        assert default_of(Integer) == Integer(0)
        assert default_of(Float) == Float(0.0, 0)
        assert default_of(Text) == Text("")
        assert default_of(DateTime).value == datetime.datetime.min

    def test_no_default_for_formula(self) -> None:
        with pytest.raises(TypeError):
            default_of(FormulaCall)


class TestSameForm:
    def test_float_and_integer(self) -> None:
        a, b = same_form(Float(1.2, 2), Integer(4))
        assert a == Float(1.2, 2)
        assert b == Float(4.0, 0)

    def test_integer_and_float(self) -> None:
        a, b = same_form(Integer(4), Float(1.2, 2))
        assert isinstance(a, Float) and isinstance(b, Float)
        assert a.precision == 0

    def test_integers_unchanged(self) -> None:
        assert same_form(Integer(1), Integer(2)) == (Integer(1), Integer(2))

    @pytest.mark.parametrize("other", [Text("x"), Null(), DateTime(datetime.datetime(2024, 1, 1))])
    def test_non_numeric_rejected(self, other: Value) -> None:
        with pytest.raises(InvalidOperands):
            same_form(Integer(1), other)
        with pytest.raises(InvalidOperands):
            same_form(other, Float(1.0, 1))


class TestAllReferences:
    def test_order_and_dedup(self) -> None:
        a0, b0 = Coordinate(0, 0), Coordinate(0, 1)
        value = FormulaCall("ADD", [
            CellReference(b0),
            FormulaCall("ADD", [CellReference(a0), CellReference(b0)]),
        ])
        assert all_references(value) == [b0, a0]

    def test_simple_value_has_none(self) -> None:
        assert all_references(Integer(3)) == []

    def test_bare_reference(self) -> None:
        assert all_references(CellReference(Coordinate(2, 2))) == [Coordinate(2, 2)]
