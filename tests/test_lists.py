# tests/test_lists.py
"""
Tests for list literals, list-valued variables and the list methods.
"""

import pytest

from xod.errors import Span, XodErrorCodes
from xod.runtime import ListValue, NumValue


class TestListLiterals:
    """Building list values from literals."""

    def test_items_are_evaluated(self, runner):
        runner.run("x = 3\nlst = [1, x, (x << 1), 0b11]")
        assert runner.var("lst") == ListValue((1, 3, 6, 3))

    def test_empty(self, runner):
        runner.run("lst = []")
        assert runner.var("lst") == ListValue(())
        assert len(runner.var("lst")) == 0

    def test_list_variables_are_spliced(self, runner):
        runner.run("a = [1, 2]\nb = [0, a, 3]")
        assert runner.var("b") == ListValue((0, 1, 2, 3))

    def test_scalar_variables_are_items(self, runner):
        runner.run("a = 7\nb = [a, a]")
        assert runner.var("b") == ListValue((7, 7))

    def test_call_returning_list_is_rejected(self, runner):
        error = runner.failure("lst = [1]\nb = [lst.append(2)]")
        assert error.code == XodErrorCodes.LIST_IN_LIST
        assert error.message == "`lst.append(2)` returns a list, not a number."
        assert error.fix == "Try using `.front()` or `.back()` to get a single element."
        assert error.span == Span(15, 28)

    def test_call_returning_number_is_an_item(self, runner):
        runner.run("lst = [5, 6]\nb = [lst.front(), 9]")
        assert runner.var("b") == ListValue((5, 9))
        assert runner.var("lst") == ListValue((6,))

    def test_multiline_literal(self, runner):
        runner.run("lst = [\n  1,\n  2\n]")
        assert runner.var("lst") == ListValue((1, 2))

    def test_render(self):
        assert ListValue((1, 255)).render() == "[0x1, 0xff]"
        assert str(ListValue(())) == "[]"


class TestAppendPrepend:
    """Methods that grow a list."""

    def test_append(self, runner):
        result = runner.value("lst = [1]\nlst.append(2)")
        assert result == ListValue((1, 2))
        assert runner.var("lst") == ListValue((1, 2))

    def test_prepend(self, runner):
        runner.run("lst = [1]\nlst.prepend(0x10)")
        assert runner.var("lst") == ListValue((16, 1))

    def test_expression_argument(self, runner):
        runner.run("lst = []\nlst.append(1 << 4)")
        assert runner.var("lst") == ListValue((16,))

    def test_on_a_number(self, runner):
        error = runner.failure("x = 1\nx.append(2)")
        assert error.code == XodErrorCodes.EXPECTED_LIST
        assert error.message == "Expected a list, but got a number."
        assert error.fix == "x = [x]"
        assert error.span == Span(6, 7)

    def test_list_argument_is_rejected(self, runner):
        error = runner.failure("a = [1]\nb = [2]\na.append(b)")
        assert error.code == XodErrorCodes.EXPECTED_NUMBER
        assert error.fix == "b.index(0)"

    def test_undefined_list(self, runner):
        error = runner.failure("nope.append(1)")
        assert error.code == XodErrorCodes.UNDEFINED_VARIABLE
        assert error.fix == "nope = 0x42"


class TestPopping:
    """Methods that remove an element from either end."""

    @pytest.mark.parametrize("method, element, rest", [
        ("front", 1, (2, 3)),
        ("pop", 1, (2, 3)),
        ("back", 3, (1, 2)),
        ("pop_back", 3, (1, 2)),
    ])
    def test_removes_element(self, runner, method, element, rest):
        result = runner.value(f"lst = [1, 2, 3]\nlst.{method}()")
        assert result == NumValue(element)
        assert runner.var("lst") == ListValue(rest)

    def test_pop_into_variable(self, runner):
        runner.run("lst = [4, 5]\nx = lst.pop()")
        assert runner.var("x") == NumValue(4)
        assert runner.var("lst") == ListValue((5,))

    @pytest.mark.parametrize("method, word", [
        ("front", "front"),
        ("pop", "front"),
        ("back", "back"),
        ("pop_back", "back"),
    ])
    def test_empty_list(self, runner, method, word):
        error = runner.failure(f"lst = []\nlst.{method}()")
        assert error.code == XodErrorCodes.EMPTY_LIST
        assert error.message == f"List is empty, cannot get {word} element."
        assert error.fix == "lst.append(0x1)"

    def test_drain(self, runner):
        runner.run("lst = [1, 2]\nlst.pop()\nlst.pop()")
        assert runner.var("lst") == ListValue(())


class TestIndex:
    """Reading an element by position."""

    @pytest.mark.parametrize("method", ["index", "get"])
    def test_reads_without_removing(self, runner, method):
        assert runner.value(f"lst = [7, 8, 9]\nlst.{method}(1)") == NumValue(8)
        assert runner.var("lst") == ListValue((7, 8, 9))

    def test_out_of_range(self, runner):
        error = runner.failure("lst = [1, 2, 3]\nlst.index(5)")
        assert error.code == XodErrorCodes.INDEX_OUT_OF_RANGE
        assert error.message == "Index out of bounds."
        assert error.fix == "lst.index(2)"
        assert error.span == Span(26, 27)

    def test_out_of_range_on_empty_list(self, runner):
        error = runner.failure("lst = []\nlst.index(0)")
        assert error.fix == "lst.append(0)"

    def test_index_in_expression(self, runner):
        assert runner.value("lst = [0xf0]\nlst.index(0) & 0x30") == NumValue(0x30)


class TestRanges:
    """Range spellings and bounds."""

    @pytest.mark.parametrize("source", ["r = 0..4", "r = (0..4)", "r = range(0, 4)"])
    def test_spellings(self, runner, source):
        runner.run(source)
        assert runner.var("r") == ListValue((0, 1, 2, 3))

    def test_bounds_from_variables(self, runner):
        runner.run("a = 2\nb = 4\nr = a..b")
        assert runner.var("r") == ListValue((2, 3))

    def test_range_is_a_list(self, runner):
        assert runner.value("r = 0..2\nr.append(9)") == ListValue((0, 1, 9))
