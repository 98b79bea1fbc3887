"""Flat-form checker: validates the contract handed to constraint emission.

A flattened program may assume:
  - every right-hand side is an atom or one binary operation over atoms,
    except the weighted-sum redefinition closing a bit decomposition;
  - a bit decomposition is `D = x - y`, then `D_b0 .. D_b7` each constrained
    as `D_bi = D_bi * D_bi` in order, then `D = weighted sum of its bits`,
    all contiguous;
  - every name is defined before it is read (bits are defined by the witness
    as soon as their group opens);
  - the final definition is the only return.
"""

from __future__ import annotations

from .ast import (
    BIT_WIDTH,
    Assignment,
    BinaryOp,
    Definition,
    Expr,
    IfElse,
    LessThan,
    Mult,
    Pow,
    Program,
    Return,
    Sub,
    VariableReference,
    bit_name,
    is_flattened,
    weighted_sum,
)
from .emit import definition_to_source


class CheckError(Exception):
    def __init__(self, msg: str, index: int):
        self.msg: str = msg
        self.index: int = index
        super().__init__(msg + " at definition " + str(index))


def reads(expr: Expr) -> list[str]:
    """Variable names read by expr, in left-to-right order."""
    if isinstance(expr, VariableReference):
        return [expr.name]
    if isinstance(expr, BinaryOp):
        return reads(expr.left) + reads(expr.right)
    if isinstance(expr, Pow):
        return reads(expr.base) + reads(expr.exponent)
    if isinstance(expr, IfElse):
        cond = expr.condition
        names: list[str] = []
        if isinstance(cond, LessThan):
            names = reads(cond.lhs) + reads(cond.rhs)
        return names + reads(expr.consequent) + reads(expr.alternative)
    return []


def _booleanness(name: str) -> Assignment:
    return Assignment(name, Mult(VariableReference(name), VariableReference(name)))


class Checker:
    def __init__(self) -> None:
        self.errors: list[CheckError] = []
        self.defined: set[str] = set()

    def error(self, msg: str, index: int) -> None:
        self.errors.append(CheckError(msg, index))

    def check_program(self, program: Program) -> None:
        for p in program.parameters:
            self.defined.add(p.name)
        defs = program.definitions
        if len(defs) == 0:
            self.error("program has no definitions", 0)
            return
        i = 0
        while i < len(defs):
            d = defs[i]
            if isinstance(d, Return) and i != len(defs) - 1:
                self.error("return before the final definition", i)
            if i == len(defs) - 1 and not isinstance(d, Return):
                self.error("last definition is not a return", i)
            if self._opens_group(defs, i):
                i = self._check_group(defs, i)
                continue
            self._check_definition(d, i)
            i += 1

    def _opens_group(self, defs: list[Definition], i: int) -> bool:
        d = defs[i]
        if not isinstance(d, Assignment) or not isinstance(d.expr, Sub):
            return False
        if i + 1 >= len(defs):
            return False
        nxt = defs[i + 1]
        return isinstance(nxt, Assignment) and nxt.name == bit_name(d.name, 0)

    def _check_group(self, defs: list[Definition], start: int) -> int:
        """Check one bit decomposition; returns the index after it."""
        head = defs[start]
        assert isinstance(head, Assignment)
        self._check_definition(head, start)
        name = head.name
        for k in range(BIT_WIDTH):
            self.defined.add(bit_name(name, k))
        i = start + 1
        for k in range(BIT_WIDTH):
            if i >= len(defs) or defs[i] != _booleanness(bit_name(name, k)):
                self.error(
                    "expected booleanness constraint for " + bit_name(name, k), i
                )
                return i
            i += 1
        if i >= len(defs) or defs[i] != Assignment(name, weighted_sum(name)):
            self.error("expected weighted-sum redefinition of " + name, i)
            return i
        return i + 1

    def _check_definition(self, d: Definition, index: int) -> None:
        expr = d.expr if isinstance(d, (Assignment, Return)) else None
        if expr is None:
            self.error("unknown definition " + type(d).__name__, index)
            return
        if not is_flattened(expr):
            self.error("not flat: " + definition_to_source(d), index)
        for name in reads(expr):
            if name not in self.defined:
                self.error(name + " read before definition", index)
        if isinstance(d, Assignment):
            self.defined.add(d.name)


def check_flat(program: Program) -> list[CheckError]:
    """Check the flat-form contract. Returns list of errors (empty = ok)."""
    checker = Checker()
    checker.check_program(program)
    return checker.errors
