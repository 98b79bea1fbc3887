"""zkflat parser and flattener: public API."""

from __future__ import annotations

from .ast import Program
from .check import CheckError, check_flat
from .emit import to_source
from .flatten import FlattenError as FlattenError, flatten_program
from .parse import ParseError as ParseError, parse_program
from .runtime import RuntimeFault as RuntimeFault, run as run_program


def parse(source: str) -> Program:
    """Parse program text into a Program AST."""
    return parse_program(source)


def flatten(program: Program, strict_pow: bool = False) -> Program:
    """Flatten a parsed program into one operation per definition."""
    return flatten_program(program, strict_pow)


def compile_source(source: str, strict_pow: bool = False) -> Program:
    """Parse and flatten program text."""
    return flatten_program(parse_program(source), strict_pow)


def check(program: Program) -> list[CheckError]:
    """Check the flat-form contract. Returns list of errors (empty = ok)."""
    return check_flat(program)


def emit(program: Program) -> str:
    """Render a Program as text."""
    return to_source(program)


def run(program: Program, args: dict[str, int] | list[int]) -> int:
    """Evaluate a nested or flattened program."""
    return run_program(program, args)
