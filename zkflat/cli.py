"""zkflat CLI: parse and flatten a program file."""

from __future__ import annotations

import json
import sys

from .ast import Program
from .check import check_flat
from .emit import to_source
from .flatten import FlattenError, flatten_program
from .parse import ParseError, parse_program
from .runtime import RuntimeFault, run
from .serialize import program_to_dict

PHASES: list[str] = ["parse", "flatten"]

USAGE: str = """\
zkflat [OPTIONS] [INPUT] [-o OUTPUT]

Options:
  --stop-at PHASE     Stop after phase: parse, flatten (default: flatten)
  --json              Print the program as JSON instead of source text
  --strict-pow        Expand powers of number literals exactly
  --check             Verify the flat-form contract after flattening
  --run ARGS          Evaluate with comma-separated integer arguments
  -o, --output FILE   Write output to FILE instead of stdout
  --help              Show this help message
"""


class Options:
    def __init__(self) -> None:
        self.stop_at: str = "flatten"
        self.as_json: bool = False
        self.strict_pow: bool = False
        self.verify: bool = False
        self.run_args: list[int] | None = None
        self.input_file: str | None = None
        self.output_file: str | None = None


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("error: invalid utf-8 in input", file=sys.stderr)
        return ("", 1)
    return (source, 0)


def write_output(output: str, output_file: str | None) -> int:
    """Write output to file or stdout. Returns 0 on success, 1 on error."""
    if output_file is not None:
        try:
            with open(output_file, "w") as f:
                f.write(output)
        except OSError:
            print("error: cannot write '" + output_file + "'", file=sys.stderr)
            return 1
        return 0
    print(output, end="")
    return 0


def _render(program: Program, as_json: bool) -> str:
    if as_json:
        return json.dumps(program_to_dict(program), indent=2) + "\n"
    return to_source(program)


def run_pipeline(source: str, opts: Options) -> tuple[int, str]:
    """Run parse and flatten. Returns (exit_code, output)."""
    try:
        program = parse_program(source)
    except ParseError as e:
        print("error: " + str(e), file=sys.stderr)
        return (1, "")
    if opts.stop_at == "flatten":
        try:
            program = flatten_program(program, opts.strict_pow)
        except FlattenError as e:
            print("error: " + str(e), file=sys.stderr)
            return (1, "")
        if opts.verify:
            errors = check_flat(program)
            if len(errors) > 0:
                for err in errors:
                    print("error: " + str(err), file=sys.stderr)
                return (1, "")
    if opts.run_args is not None:
        try:
            result = run(program, opts.run_args)
        except RuntimeFault as e:
            print("error: runtime: " + str(e), file=sys.stderr)
            return (1, "")
        return (0, str(result) + "\n")
    return (0, _render(program, opts.as_json))


def _parse_run_args(text: str) -> list[int] | None:
    values: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if part == "":
            continue
        try:
            values.append(int(part))
        except ValueError:
            return None
    return values


def parse_args(args: list[str]) -> tuple[Options | None, int]:
    """Parse command-line arguments. Returns (options, exit_code); options is None to exit."""
    opts = Options()
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return (None, 0)
        elif arg in ("--stop-at", "--run", "-o", "--output"):
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                return (None, 2)
            value = args[i + 1]
            if arg == "--stop-at":
                if value not in PHASES:
                    print("error: unknown phase '" + value + "'", file=sys.stderr)
                    return (None, 2)
                opts.stop_at = value
            elif arg == "--run":
                run_args = _parse_run_args(value)
                if run_args is None:
                    print("error: invalid --run arguments '" + value + "'", file=sys.stderr)
                    return (None, 2)
                opts.run_args = run_args
            else:
                opts.output_file = value
            i += 2
        elif arg == "--json":
            opts.as_json = True
            i += 1
        elif arg == "--strict-pow":
            opts.strict_pow = True
            i += 1
        elif arg == "--check":
            opts.verify = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            return (None, 2)
        else:
            if opts.input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                return (None, 2)
            if arg != "-":
                opts.input_file = arg
            i += 1
    return (opts, 0)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    opts, code = parse_args(argv if argv is not None else sys.argv[1:])
    if opts is None:
        return code
    source, err = read_source(opts.input_file)
    if err != 0:
        return err
    if source.strip() == "":
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, output = run_pipeline(source, opts)
    if exit_code != 0:
        return exit_code
    return write_output(output, opts.output_file)


if __name__ == "__main__":
    sys.exit(main())
