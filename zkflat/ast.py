"""zkflat AST: program, definition and expression nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


# Width of the bit decomposition used to lower comparisons
BIT_WIDTH: int = 8

SYMBOL_PREFIX: str = "sym_"


def symbol_name(n: int) -> str:
    """Name of the n-th synthesized temporary."""
    return SYMBOL_PREFIX + str(n)


def bit_name(name: str, i: int) -> str:
    """Name of bit i in the decomposition of `name`."""
    return name + "_b" + str(i)


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""


@dataclass
class NumberLiteral(Expr):
    """Integer literal."""

    value: int


@dataclass
class VariableReference(Expr):
    """Variable reference."""

    name: str


@dataclass
class BinaryOp(Expr):
    """left op right: base for the four flat operations."""

    op: ClassVar[str] = ""

    left: Expr
    right: Expr


@dataclass
class Add(BinaryOp):
    op: ClassVar[str] = "+"


@dataclass
class Sub(BinaryOp):
    op: ClassVar[str] = "-"


@dataclass
class Mult(BinaryOp):
    op: ClassVar[str] = "*"


@dataclass
class Div(BinaryOp):
    op: ClassVar[str] = "/"


@dataclass
class Pow(Expr):
    """base ** exponent."""

    base: Expr
    exponent: Expr


@dataclass
class IfElse(Expr):
    """cond ? consequent : alternative."""

    condition: Condition
    consequent: Expr
    alternative: Expr


# ============================================================
# CONDITIONS
# ============================================================


@dataclass
class Condition:
    """Base for all conditions."""


@dataclass
class LessThan(Condition):
    """lhs < rhs."""

    lhs: Expr
    rhs: Expr


# ============================================================
# DEFINITIONS
# ============================================================


@dataclass
class Definition:
    """Base for all definitions."""


@dataclass
class Assignment(Definition):
    """name = expr."""

    name: str
    expr: Expr


@dataclass
class Return(Definition):
    """return expr."""

    expr: Expr


# ============================================================
# PROGRAM
# ============================================================


@dataclass
class Parameter:
    """Function parameter."""

    name: str


@dataclass
class Program:
    """def id(parameters): definitions: last definition is a Return."""

    id: str
    parameters: list[Parameter]
    definitions: list[Definition]


BINARY_OPS: dict[str, type[BinaryOp]] = {
    "+": Add,
    "-": Sub,
    "*": Mult,
    "/": Div,
}


def weighted_sum(name: str) -> Expr:
    """b7 * 128 + (b6 * 64 + ( ... + (b1 * 2 + b0))) over the bits of name."""
    total: Expr = VariableReference(bit_name(name, 0))
    for i in range(1, BIT_WIDTH):
        total = Add(Mult(VariableReference(bit_name(name, i)), NumberLiteral(2**i)), total)
    return total


def is_linear(expr: Expr) -> bool:
    """Atomic: a number literal or a variable reference."""
    return isinstance(expr, (NumberLiteral, VariableReference))


def is_flattened(expr: Expr) -> bool:
    """Atomic, or a single binary operation over two atomic operands."""
    if is_linear(expr):
        return True
    if isinstance(expr, BinaryOp):
        return is_linear(expr.left) and is_linear(expr.right)
    return False
