"""zkflat emitter: renders programs back into source-like text.

Output of the parser re-parses to the same AST. Flattened programs contain
synthesized `sym_<n>` names, which are not valid source identifiers, so
their rendering is for display only.
"""

from __future__ import annotations

from .ast import (
    Assignment,
    BinaryOp,
    Condition,
    Definition,
    Expr,
    IfElse,
    LessThan,
    NumberLiteral,
    Pow,
    Program,
    Return,
    VariableReference,
    is_linear,
)


def to_source(program: Program) -> str:
    """Render a Program as text."""
    return _Emitter().emit_program(program)


def definition_to_source(definition: Definition) -> str:
    return _Emitter().definition(definition)


def expr_to_source(expr: Expr) -> str:
    return _Emitter().expr(expr)


def condition_to_source(cond: Condition) -> str:
    return _Emitter().condition(cond)


class _Emitter:
    _INDENT: str = "    "

    def __init__(self) -> None:
        self._lines: list[str] = []

    def emit_program(self, program: Program) -> str:
        self._lines = []
        params = ", ".join(p.name for p in program.parameters)
        self._lines.append("def " + program.id + "(" + params + "):")
        for definition in program.definitions:
            self._lines.append(self._INDENT + self.definition(definition))
        return "\n".join(self._lines) + "\n"

    def definition(self, definition: Definition) -> str:
        if isinstance(definition, Assignment):
            return definition.name + " = " + self.expr(definition.expr)
        if isinstance(definition, Return):
            return "return " + self.expr(definition.expr)
        raise TypeError("unknown definition: " + type(definition).__name__)

    def expr(self, expr: Expr) -> str:
        if isinstance(expr, NumberLiteral):
            return str(expr.value)
        if isinstance(expr, VariableReference):
            return expr.name
        if isinstance(expr, BinaryOp):
            return self._operand(expr.left) + " " + expr.op + " " + self.expr(expr.right)
        if isinstance(expr, Pow):
            return self._operand(expr.base) + " ** " + self._operand(expr.exponent)
        if isinstance(expr, IfElse):
            return (
                self.condition(expr.condition)
                + " ? "
                + self._branch(expr.consequent)
                + " : "
                + self._branch(expr.alternative)
            )
        raise TypeError("unknown expression: " + type(expr).__name__)

    def condition(self, cond: Condition) -> str:
        if isinstance(cond, LessThan):
            return self._operand(cond.lhs) + " < " + self._operand(cond.rhs)
        raise TypeError("unknown condition: " + type(cond).__name__)

    def _operand(self, expr: Expr) -> str:
        """Atoms render bare; compound operands are parenthesized."""
        if is_linear(expr):
            return self.expr(expr)
        return "(" + self.expr(expr) + ")"

    def _branch(self, expr: Expr) -> str:
        if isinstance(expr, IfElse):
            return "(" + self.expr(expr) + ")"
        return self.expr(expr)
