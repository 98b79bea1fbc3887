"""Tests for the reference interpreter and semantic preservation of flattening."""

import pytest

from zkflat import RuntimeFault, compile_source, parse, run
from zkflat.ast import Parameter, Program, Return, VariableReference
from zkflat.runtime import Interpreter

MIN = "def min(a, b):\n    return a < b ? a : b\n"

MIXED = """
def f(a, b):
    // select, then branch again on the result
    c = a < b ? a * b : b - a
    d = c < 3 ? c ** 3 : 2 + c * a
    return d + c * a
"""


def _both(source: str, args: list[int], strict_pow: bool = False) -> tuple[int, int]:
    """Evaluate the nested and the flattened form of source."""
    nested = run(parse(source), args)
    flat = run(compile_source(source, strict_pow), args)
    return nested, flat


@pytest.mark.parametrize(
    "args,expected",
    [([3, 5], 3), ([5, 3], 3), ([-4, 7], -4), ([7, -4], -4), ([2, 2], 2)],
)
def test_min(args: list[int], expected: int):
    assert _both(MIN, args) == (expected, expected)


@pytest.mark.parametrize("a", [-9, -2, 0, 1, 4])
@pytest.mark.parametrize("b", [-5, 0, 3, 6])
def test_flattening_preserves_semantics(a: int, b: int):
    nested, flat = _both(MIXED, [a, b])
    assert nested == flat


def test_comparison_outside_window_is_wrong():
    # 100 - (-100) does not fit in 8 signed bits; the sign bit reads 1
    nested, flat = _both(MIN, [100, -100])
    assert nested == -100
    assert flat == 100


def test_power():
    assert _both("def g(x):\n    return x ** 5\n", [3]) == (243, 243)


def test_literal_power_default_and_strict():
    source = "def g(x):\n    return x + 2 ** 5\n"
    assert _both(source, [1]) == (33, 5)
    assert _both(source, [1], strict_pow=True) == (33, 33)


def test_exact_division():
    assert _both("def f(a, b):\n    return a / b\n", [12, 4]) == (3, 3)


@pytest.mark.parametrize("args,message", [([7, 2], "inexact division"), ([1, 0], "division by zero")])
def test_division_faults(args: list[int], message: str):
    with pytest.raises(RuntimeFault, match=message):
        run(compile_source("def f(a, b):\n    return a / b\n"), args)


def test_keyword_arguments():
    assert run(parse(MIN), {"a": 9, "b": 4}) == 4


def test_missing_keyword_argument():
    with pytest.raises(RuntimeFault, match="missing argument 'b'"):
        run(parse(MIN), {"a": 9})


def test_wrong_arity():
    with pytest.raises(RuntimeFault, match="expects 2 arguments, got 1"):
        run(parse(MIN), [1])


def test_undefined_variable():
    program = Program("f", [Parameter("a")], [Return(VariableReference("zz"))])
    with pytest.raises(RuntimeFault, match="undefined variable 'zz'"):
        run(program, [1])


def test_bits_are_supplied_from_difference():
    program = compile_source(MIN)
    # sym_2 = 3 - 5 = -2 -> 0b11111110
    interp = Interpreter(program)
    interp.bind_args([3, 5])
    assert interp.execute() == 3
    bits = [interp.env[f"sym_2_b{i}"] for i in range(8)]
    assert bits == [0, 1, 1, 1, 1, 1, 1, 1]
    assert interp.env["sym_2"] == 254
