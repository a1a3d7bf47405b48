"""Evaluator tests driven by 03_run/*.tests files.

Each case is a TinyC program followed by assertions:

    exit:             exact exit code
    stdout:           one line of expected stdout (repeatable, newline added)
    stdout-empty:     stdout must be empty
    stderr-contains:  stderr must contain substring
    stderr-empty:     stderr must be empty
"""

from pathlib import Path

import pytest

from conftest import discover_tests
from tinyc import RunResult

RUN_DIR = Path(__file__).parent / "03_run"


def pytest_generate_tests(metafunc):
    if "run_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_tests(RUN_DIR)
        ]
        metafunc.parametrize("run_input,run_expected", params)


def check_assertions(result: RunResult, expected: str) -> None:
    stdout_lines: list[str] = []
    check_stdout = False
    stdout = result.stdout.decode(errors="replace")
    stderr = result.stderr.decode(errors="replace")
    for line in expected.split("\n"):
        if line.startswith("stdout:"):
            check_stdout = True
            text = line[7:]
            stdout_lines.append(text[1:] if text.startswith(" ") else text)
            continue
        line = line.strip()
        if not line:
            continue
        if line.startswith("exit:"):
            code = int(line[5:].strip())
            assert result.exit_code == code, (
                f"expected exit {code}, got {result.exit_code}\nstderr: {stderr}"
            )
        elif line.startswith("stdout-empty:"):
            assert stdout == "", f"expected empty stdout, got {stdout!r}"
        elif line.startswith("stderr-contains:"):
            needle = line[16:].strip()
            assert needle in stderr, f"expected stderr to contain {needle!r}, got {stderr!r}"
        elif line.startswith("stderr-empty:"):
            assert stderr == "", f"expected empty stderr, got {stderr!r}"
        else:
            pytest.fail(f"Bad assertion: {line}")
    if check_stdout:
        want = "".join(s + "\n" for s in stdout_lines)
        assert stdout == want, f"expected stdout {want!r}, got {stdout!r}"


def test_run(run_input: str, run_expected: str, run_tc):
    check_assertions(run_tc(run_input), run_expected)
