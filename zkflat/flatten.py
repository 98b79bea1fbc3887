"""Flattening: lowers nested expressions into one operation per definition.

Every definition produced here has a right-hand side that is either an atom
(number literal or variable reference) or a single binary operation over two
atoms. Intermediate values are bound to synthesized temporaries `sym_<n>`,
numbered by a counter that lives for one `flatten_program` run and is never
reset between definitions, so temporaries are unique across the program and
each one is assigned before its first use.

Comparisons `lhs < rhs` are lowered by decomposing `lhs - rhs` into
`BIT_WIDTH` boolean wires: each bit `D_bi` gets the constraint
`D_bi = D_bi * D_bi`, `D` is redefined as the weighted sum of its bits, and
the most significant bit is the comparison result. The bit values themselves
are not computed here; the witness stage supplies them. The weighted-sum
redefinition is the one definition that is not flat.
"""

from __future__ import annotations

from .ast import (
    BIT_WIDTH,
    Add,
    Assignment,
    BinaryOp,
    Condition,
    Definition,
    Expr,
    IfElse,
    LessThan,
    Mult,
    NumberLiteral,
    Parameter,
    Pow,
    Program,
    Return,
    Sub,
    VariableReference,
    bit_name,
    is_flattened,
    is_linear,
    symbol_name,
    weighted_sum,
)
from .emit import condition_to_source, expr_to_source


# Error kinds
E_POW_EXPONENT = "UnsupportedPowExponent"
E_POW_BASE = "UnsupportedPowBase"
E_UNSUPPORTED_CONDITION = "UnsupportedConditionOperator"
E_OUT_OF_RANGE = "ComparisonOutOfRange"
E_UNSUPPORTED_EXPRESSION = "UnsupportedExpression"

# Signed window representable by the bit decomposition
MIN_DIFFERENCE: int = -(2 ** (BIT_WIDTH - 1))
MAX_DIFFERENCE: int = 2 ** (BIT_WIDTH - 1) - 1


class FlattenError(Exception):
    """Unsupported construct found while flattening."""

    def __init__(self, msg: str, kind: str, function: str = ""):
        self.msg: str = msg
        self.kind: str = kind
        self.function: str = function
        text = kind + ": " + msg
        if function != "":
            text += " in function '" + function + "'"
        super().__init__(text)


class Flattener:
    """State of one flattening run: the name counter and the output definitions."""

    def __init__(self, function: str = "", strict_pow: bool = False) -> None:
        self.function: str = function
        self.strict_pow: bool = strict_pow
        self.counter: int = 0
        self.definitions: list[Definition] = []

    def error(self, msg: str, kind: str) -> FlattenError:
        return FlattenError(msg, kind, self.function)

    def fresh_name(self) -> str:
        name = symbol_name(self.counter)
        self.counter += 1
        return name

    def bind(self, expr: Expr) -> VariableReference:
        """Assign expr to a fresh temporary and return a reference to it."""
        name = self.fresh_name()
        self.definitions.append(Assignment(name, expr))
        return VariableReference(name)

    def _operand(self, expr: Expr) -> Expr:
        if is_linear(expr):
            return expr
        return self.bind(expr)

    # ── Expressions ─────────────────────────────────────────

    def flatten_expression(self, expr: Expr) -> Expr:
        """Return a flat equivalent of expr, emitting temporaries as needed."""
        if is_linear(expr):
            return expr
        if isinstance(expr, BinaryOp):
            if is_flattened(expr):
                return expr
            # Both sides are flattened before either is bound
            left = self.flatten_expression(expr.left)
            right = self.flatten_expression(expr.right)
            return type(expr)(self._operand(left), self._operand(right))
        if isinstance(expr, Pow):
            return self._flatten_pow(expr)
        if isinstance(expr, IfElse):
            cond = self.flatten_condition(expr.condition)
            # cond * consequent + (1 - cond) * alternative
            return self.flatten_expression(
                Add(
                    Mult(cond, expr.consequent),
                    Mult(Sub(NumberLiteral(1), cond), expr.alternative),
                )
            )
        raise self.error(
            "cannot flatten " + type(expr).__name__, E_UNSUPPORTED_EXPRESSION
        )

    def _flatten_pow(self, expr: Pow) -> Expr:
        exponent = expr.exponent
        if not isinstance(exponent, NumberLiteral) or exponent.value <= 1:
            raise self.error(
                "expected number > 1 as pow exponent in " + expr_to_source(expr),
                E_POW_EXPONENT,
            )
        base = expr.base
        if isinstance(base, VariableReference) or (
            self.strict_pow and isinstance(base, NumberLiteral)
        ):
            if exponent.value == 2:
                return Mult(base, base)
            prev = self.flatten_expression(Pow(base, NumberLiteral(exponent.value - 1)))
            return Mult(self.bind(prev), base)
        if isinstance(base, NumberLiteral):
            # Squares regardless of the exponent unless strict_pow is set
            return Mult(base, base)
        raise self.error(
            "only variables and numbers allowed in pow base: " + expr_to_source(expr),
            E_POW_BASE,
        )

    # ── Conditions ──────────────────────────────────────────

    def flatten_condition(self, cond: Condition) -> VariableReference:
        """Lower a comparison to bit-decomposition definitions; returns the sign bit."""
        if not isinstance(cond, LessThan):
            raise self.error(
                "unsupported condition " + type(cond).__name__, E_UNSUPPORTED_CONDITION
            )
        lhs = self.flatten_expression(cond.lhs)
        rhs = self.flatten_expression(cond.rhs)
        if isinstance(lhs, NumberLiteral) and isinstance(rhs, NumberLiteral):
            diff = lhs.value - rhs.value
            if diff < MIN_DIFFERENCE or diff > MAX_DIFFERENCE:
                raise self.error(
                    "difference of " + condition_to_source(cond)
                    + " does not fit in " + str(BIT_WIDTH) + " bits",
                    E_OUT_OF_RANGE,
                )
        lhs_ref = self.bind(lhs)
        rhs_ref = self.bind(rhs)
        result = self.bind(Sub(lhs_ref, rhs_ref)).name
        for i in range(BIT_WIDTH):
            bit = bit_name(result, i)
            self.definitions.append(
                Assignment(bit, Mult(VariableReference(bit), VariableReference(bit)))
            )
        # Left unflattened
        self.definitions.append(Assignment(result, weighted_sum(result)))
        return VariableReference(bit_name(result, BIT_WIDTH - 1))


def flatten_program(program: Program, strict_pow: bool = False) -> Program:
    """Flatten every definition of program into a new Program."""
    flattener = Flattener(program.id, strict_pow)
    for definition in program.definitions:
        if isinstance(definition, Return):
            rhs = flattener.flatten_expression(definition.expr)
            flattener.definitions.append(Return(rhs))
        elif isinstance(definition, Assignment):
            rhs = flattener.flatten_expression(definition.expr)
            flattener.definitions.append(Assignment(definition.name, rhs))
    return Program(
        program.id,
        [Parameter(p.name) for p in program.parameters],
        flattener.definitions,
    )
