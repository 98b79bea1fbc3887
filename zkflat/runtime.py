"""Reference interpreter for nested and flattened programs.

Values are Python integers. Division must be exact. Conditionals evaluate
both branches and combine them as `c * consequent + (1 - c) * alternative`,
the same arithmetic the flattener produces, so a fault in either branch is
a fault of the whole expression in both forms.

Flattened programs read the bits of a decomposed difference before anything
defines them. Those are witness values: on the first read of `D_bi` with `D`
bound, the interpreter supplies all bits of `D` in two's complement
(`D mod 2**BIT_WIDTH`), then checks every constraint that redefines them.
"""

from __future__ import annotations

from .ast import (
    BIT_WIDTH,
    Add,
    Assignment,
    Condition,
    Div,
    Expr,
    IfElse,
    LessThan,
    Mult,
    NumberLiteral,
    Pow,
    Program,
    Return,
    Sub,
    VariableReference,
    bit_name,
)
from .emit import definition_to_source


class RuntimeFault(Exception):
    """Evaluation failure."""


class Interpreter:
    def __init__(self, program: Program) -> None:
        self.program: Program = program
        self.env: dict[str, int] = {}
        self.witness: set[str] = set()

    def bind_args(self, args: dict[str, int] | list[int]) -> None:
        names = [p.name for p in self.program.parameters]
        if isinstance(args, dict):
            for name in names:
                if name not in args:
                    raise RuntimeFault("missing argument " + repr(name))
                self.env[name] = args[name]
            return
        if len(args) != len(names):
            raise RuntimeFault(
                self.program.id
                + " expects "
                + str(len(names))
                + " arguments, got "
                + str(len(args))
            )
        for name, value in zip(names, args):
            self.env[name] = value

    def execute(self) -> int:
        for definition in self.program.definitions:
            if isinstance(definition, Return):
                return self.eval(definition.expr)
            if isinstance(definition, Assignment):
                value = self.eval(definition.expr)
                name = definition.name
                if name in self.witness and value != self.env[name]:
                    raise RuntimeFault(
                        "constraint failed: " + definition_to_source(definition)
                    )
                self.env[name] = value
        raise RuntimeFault("program ended without return")

    # ── Expressions ─────────────────────────────────────────

    def eval(self, expr: Expr) -> int:
        if isinstance(expr, NumberLiteral):
            return expr.value
        if isinstance(expr, VariableReference):
            return self.lookup(expr.name)
        if isinstance(expr, Add):
            return self.eval(expr.left) + self.eval(expr.right)
        if isinstance(expr, Sub):
            return self.eval(expr.left) - self.eval(expr.right)
        if isinstance(expr, Mult):
            return self.eval(expr.left) * self.eval(expr.right)
        if isinstance(expr, Div):
            return self._divide(self.eval(expr.left), self.eval(expr.right))
        if isinstance(expr, Pow):
            return self.eval(expr.base) ** self.eval(expr.exponent)
        if isinstance(expr, IfElse):
            cond = self.eval_condition(expr.condition)
            consequent = self.eval(expr.consequent)
            alternative = self.eval(expr.alternative)
            return cond * consequent + (1 - cond) * alternative
        raise RuntimeFault("cannot evaluate " + type(expr).__name__)

    def eval_condition(self, cond: Condition) -> int:
        if isinstance(cond, LessThan):
            if self.eval(cond.lhs) < self.eval(cond.rhs):
                return 1
            return 0
        raise RuntimeFault("cannot evaluate " + type(cond).__name__)

    def _divide(self, a: int, b: int) -> int:
        if b == 0:
            raise RuntimeFault("division by zero")
        if a % b != 0:
            raise RuntimeFault("inexact division " + str(a) + " / " + str(b))
        return a // b

    def lookup(self, name: str) -> int:
        if name in self.env:
            return self.env[name]
        if self._supply_bits(name):
            return self.env[name]
        raise RuntimeFault("undefined variable " + repr(name))

    def _supply_bits(self, name: str) -> bool:
        """Bind the witness bits of D if name is one of them."""
        idx = name.rfind("_b")
        if idx <= 0:
            return False
        owner = name[:idx]
        suffix = name[idx + 2 :]
        if not suffix.isdigit() or int(suffix) >= BIT_WIDTH or owner not in self.env:
            return False
        value = self.env[owner] % (2**BIT_WIDTH)
        for k in range(BIT_WIDTH):
            bit = bit_name(owner, k)
            self.env[bit] = (value >> k) & 1
            self.witness.add(bit)
        return True


def run(program: Program, args: dict[str, int] | list[int]) -> int:
    """Evaluate program with the given arguments and return its result."""
    interp = Interpreter(program)
    interp.bind_args(args)
    return interp.execute()
