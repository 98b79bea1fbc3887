"""Serialization of zkflat AST nodes to JSON-compatible dicts."""

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
)


def expr_to_dict(obj: Expr) -> dict[str, object]:
    """Serialize Expr subclasses."""
    d: dict[str, object] = {"_type": type(obj).__name__}
    if isinstance(obj, NumberLiteral):
        d["value"] = obj.value
    elif isinstance(obj, VariableReference):
        d["name"] = obj.name
    elif isinstance(obj, BinaryOp):
        d["op"] = obj.op
        d["left"] = expr_to_dict(obj.left)
        d["right"] = expr_to_dict(obj.right)
    elif isinstance(obj, Pow):
        d["base"] = expr_to_dict(obj.base)
        d["exponent"] = expr_to_dict(obj.exponent)
    elif isinstance(obj, IfElse):
        d["condition"] = condition_to_dict(obj.condition)
        d["consequent"] = expr_to_dict(obj.consequent)
        d["alternative"] = expr_to_dict(obj.alternative)
    else:
        raise TypeError("cannot serialize " + type(obj).__name__)
    return d


def condition_to_dict(obj: Condition) -> dict[str, object]:
    if isinstance(obj, LessThan):
        return {
            "_type": "LessThan",
            "lhs": expr_to_dict(obj.lhs),
            "rhs": expr_to_dict(obj.rhs),
        }
    raise TypeError("cannot serialize " + type(obj).__name__)


def definition_to_dict(obj: Definition) -> dict[str, object]:
    if isinstance(obj, Assignment):
        return {"_type": "Assignment", "name": obj.name, "expr": expr_to_dict(obj.expr)}
    if isinstance(obj, Return):
        return {"_type": "Return", "expr": expr_to_dict(obj.expr)}
    raise TypeError("cannot serialize " + type(obj).__name__)


def program_to_dict(program: Program) -> dict[str, object]:
    """Serialize a Program to dict."""
    return {
        "_type": "Program",
        "id": program.id,
        "parameters": [p.name for p in program.parameters],
        "definitions": [definition_to_dict(d) for d in program.definitions],
    }
