"""zkflat parser: reads program text line by line into a Program AST."""

from __future__ import annotations

import re

from .ast import (
    BINARY_OPS,
    Assignment,
    Condition,
    Definition,
    Expr,
    IfElse,
    LessThan,
    NumberLiteral,
    Parameter,
    Pow,
    Program,
    Return,
    VariableReference,
)
from .emit import definition_to_source


# Error kinds
E_MALFORMED_HEADER = "MalformedHeader"
E_MALFORMED_ARGUMENTS = "MalformedArgumentList"
E_CONTENT_BEFORE_DEF = "UnexpectedContentBeforeDefinition"
E_MISSING_DEF = "MissingFunctionDefinition"
E_MALFORMED_DEFINITION = "MalformedDefinitionLine"
E_MISPLACED_RETURN = "MissingOrMisplacedReturn"
E_LAST_NOT_RETURN = "LastStatementNotReturn"
E_UNPARSABLE = "UnparsableExpression"
E_UNSUPPORTED_CONDITION = "UnsupportedConditionOperator"

HEADER_RE = re.compile(
    r"^def\s+(?P<id>[A-Za-z][A-Za-z0-9]*)\s*\((?P<args>[^()]*)\)\s*:\s*$"
)
ARGS_RE = re.compile(r"^\s*[a-z]+(\s*,\s*[a-z]+)*\s*$")
ASSIGN_RE = re.compile(r"^(?P<lhs>[A-Za-z][A-Za-z0-9]*)\s*=\s*(?P<rhs>.*)$")
RETURN_RE = re.compile(r"^return\b\s*(?P<rhs>.*)$")

# Expressions are matched after spaces and tabs are removed
VARIABLE_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*$")
NUMBER_RE = re.compile(r"^[0-9]+$")
BINARY_RE = re.compile(r"^(?P<lhs>[A-Za-z0-9]+)(?P<op>\*\*|[+\-*/])(?P<rhs>.+)$")
TERNARY_RE = re.compile(
    r"^(?P<condlhs>[A-Za-z0-9]+)(?P<cmp><=|>=|==|!=|<|>)(?P<condrhs>[A-Za-z0-9]+)"
    r"\?(?P<consequent>[^:]+):(?P<alternative>[^:]+)$"
)


class ParseError(Exception):
    """Parse error with the offending line and enclosing function."""

    def __init__(self, msg: str, kind: str, lineno: int = 0, function: str = ""):
        self.msg: str = msg
        self.kind: str = kind
        self.lineno: int = lineno
        self.function: str = function
        text = kind + ": " + msg
        if function != "":
            text += " in function '" + function + "'"
        if lineno > 0:
            text += " at line " + str(lineno)
        super().__init__(text)


def _is_skipped(stripped: str) -> bool:
    return stripped == "" or stripped.startswith("//")


class Parser:
    """Line-oriented parser; tracks the current line and function for errors."""

    def __init__(self, lines: list[str]):
        self.lines: list[str] = lines
        self.pos: int = 0
        self.lineno: int = 0
        self.function: str = ""

    def error(self, msg: str, kind: str) -> ParseError:
        return ParseError(msg, kind, self.lineno, self.function)

    # ── Program ─────────────────────────────────────────────

    def parse_program(self) -> Program:
        parameters = self._parse_header()
        definitions = self._parse_body()
        self._check_returns(definitions)
        return Program(self.function, parameters, definitions)

    def _next_line(self) -> str | None:
        if self.pos >= len(self.lines):
            return None
        line = self.lines[self.pos]
        self.pos += 1
        self.lineno = self.pos
        return line

    def _parse_header(self) -> list[Parameter]:
        while True:
            line = self._next_line()
            if line is None:
                raise ParseError(
                    "end of input reached without a function definition",
                    E_MISSING_DEF,
                )
            stripped = line.strip()
            if stripped.startswith("def"):
                break
            if _is_skipped(stripped):
                continue
            raise self.error(
                "found " + repr(stripped) + " outside of function",
                E_CONTENT_BEFORE_DEF,
            )
        m = HEADER_RE.match(stripped)
        if m is None:
            raise self.error(
                "wrong definition of function: " + repr(stripped), E_MALFORMED_HEADER
            )
        self.function = m.group("id")
        args = m.group("args")
        if ARGS_RE.match(args) is None:
            raise self.error(
                "wrong argument definition: " + repr(args), E_MALFORMED_ARGUMENTS
            )
        names = [a.strip() for a in args.split(",")]
        seen: set[str] = set()
        for name in names:
            if name in seen:
                raise self.error(
                    "duplicate parameter " + repr(name), E_MALFORMED_ARGUMENTS
                )
            seen.add(name)
        return [Parameter(name) for name in names]

    def _parse_body(self) -> list[Definition]:
        definitions: list[Definition] = []
        while True:
            line = self._next_line()
            if line is None:
                break
            stripped = line.strip()
            if _is_skipped(stripped):
                continue
            m = RETURN_RE.match(stripped)
            if m is not None:
                rhs = m.group("rhs")
                if rhs.strip() == "":
                    raise self.error(
                        "return without expression: " + repr(stripped),
                        E_MALFORMED_DEFINITION,
                    )
                definitions.append(Return(self.parse_expression(rhs)))
                continue
            m = ASSIGN_RE.match(stripped)
            if m is None or m.group("rhs").strip() == "":
                raise self.error(
                    "wrong definition line: " + repr(stripped), E_MALFORMED_DEFINITION
                )
            definitions.append(
                Assignment(m.group("lhs"), self.parse_expression(m.group("rhs")))
            )
        return definitions

    def _check_returns(self, definitions: list[Definition]) -> None:
        self.lineno = 0
        if len(definitions) == 0:
            raise self.error("function has no return", E_MISPLACED_RETURN)
        last = definitions[-1]
        if not isinstance(last, Return):
            raise self.error(
                "last definition is not a return: " + definition_to_source(last),
                E_LAST_NOT_RETURN,
            )
        i = 0
        while i < len(definitions) - 1:
            if isinstance(definitions[i], Return):
                raise self.error(
                    "return must be the final definition", E_MISPLACED_RETURN
                )
            i += 1

    # ── Expressions ─────────────────────────────────────────

    def parse_expression(self, text: str) -> Expr:
        """Parse a right-hand side; the left operand of a binary form is always an atom."""
        line = text.replace(" ", "").replace("\t", "")
        if VARIABLE_RE.match(line):
            return VariableReference(line)
        if NUMBER_RE.match(line):
            return NumberLiteral(int(line))
        m = BINARY_RE.match(line)
        if m is not None:
            left = self._parse_atom(m.group("lhs"), "left operand")
            op = m.group("op")
            rhs = m.group("rhs")
            if op == "**":
                if NUMBER_RE.match(rhs) is None:
                    raise self.error(
                        "exponent must be an integer literal: " + repr(text),
                        E_UNPARSABLE,
                    )
                return Pow(left, NumberLiteral(int(rhs)))
            return BINARY_OPS[op](left, self.parse_expression(rhs))
        m = TERNARY_RE.match(line)
        if m is not None:
            condition = self._parse_condition(
                m.group("condlhs"), m.group("cmp"), m.group("condrhs")
            )
            return IfElse(
                condition,
                self.parse_expression(m.group("consequent")),
                self.parse_expression(m.group("alternative")),
            )
        raise self.error("could not parse expression: " + repr(text), E_UNPARSABLE)

    def _parse_condition(self, lhs: str, cmp: str, rhs: str) -> Condition:
        if cmp != "<":
            raise self.error(
                "unsupported comparison operator " + repr(cmp),
                E_UNSUPPORTED_CONDITION,
            )
        return LessThan(
            self._parse_atom(lhs, "comparison operand"),
            self._parse_atom(rhs, "comparison operand"),
        )

    def _parse_atom(self, text: str, what: str) -> Expr:
        if VARIABLE_RE.match(text):
            return VariableReference(text)
        if NUMBER_RE.match(text):
            return NumberLiteral(int(text))
        raise self.error("could not read " + what + ": " + repr(text), E_UNPARSABLE)


def parse_program(source: str) -> Program:
    """Parse program text into a Program AST."""
    return Parser(source.splitlines()).parse_program()


def parse_expression(text: str) -> Expr:
    """Parse a single right-hand-side expression."""
    return Parser([]).parse_expression(text)
