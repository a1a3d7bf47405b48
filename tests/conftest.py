"""Pytest configuration for the TinyC test suite."""

import sys
from pathlib import Path

import pytest

# Allow running the suite from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from tinyc import BufferConsole, OsFileSystem, RunResult, run_source  # noqa: E402


def parse_test_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse a .tests file into (name, input, expected) tuples.

    Format:

        === test name
        input lines
        ---
        expected lines
        ---
    """
    lines = path.read_text(encoding="utf-8").split("\n")
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


def discover_tests(test_dir: Path) -> list[tuple[str, str, str]]:
    """Glob *.tests in test_dir, return (test_id, input, expected) tuples."""
    results = []
    for test_file in sorted(test_dir.glob("*.tests")):
        for name, input_code, expected in parse_test_file(test_file):
            results.append((f"{test_file.stem}/{name}", input_code, expected))
    return results


@pytest.fixture
def run_tc(tmp_path: Path):
    """Run TinyC source in-process with files rooted at tmp_path."""

    def _run(source: str, stdin: bytes = b"") -> RunResult:
        return run_source(
            source,
            console=BufferConsole(stdin),
            fs=OsFileSystem(str(tmp_path)),
        )

    return _run
