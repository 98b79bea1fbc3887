"""Pytest-based parser tests.

Test cases live in 02_parse/*.tests files. Format:

    === test name
    program text
    ---
    expected
    ---

Expected is one of:
    ok                  parsing succeeds
    error: <Kind>       parsing fails with a ParseError of that kind
    <program text>      parsing succeeds and emits exactly this text
"""

from pathlib import Path

import pytest

from zkflat.emit import to_source
from zkflat.parse import ParseError, parse_program

PARSE_DIR = Path(__file__).parent / "02_parse"


def parse_test_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse .tests file into (name, input, expected) tuples."""
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, str]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_parse_tests() -> list[tuple[str, str, str]]:
    """Find all parse tests, returns (test_id, input, expected)."""
    results = []
    for test_file in sorted(PARSE_DIR.glob("*.tests")):
        for name, input_code, expected in parse_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


def pytest_generate_tests(metafunc):
    """Parametrize tests over parse test files."""
    if "parse_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_parse_tests()
        ]
        metafunc.parametrize("parse_input,parse_expected", params)


def test_parse(parse_input: str, parse_expected: str):
    """Verify parser produces expected result."""
    if parse_expected.startswith("error:"):
        expected_kind = parse_expected[6:].strip()
        with pytest.raises(ParseError) as info:
            parse_program(parse_input)
        assert info.value.kind == expected_kind, str(info.value)
        return
    try:
        program = parse_program(parse_input)
    except ParseError as e:
        pytest.fail(f"Expected success, got parse error: {e}")
    if parse_expected != "ok":
        assert to_source(program).strip() == parse_expected
