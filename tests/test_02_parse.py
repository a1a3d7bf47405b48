"""Pytest-based parser tests.

Test cases live in 02_parse/*.tests files. Expected is one of:
'ok', 'error: <message substring>'.
"""

from pathlib import Path

import pytest

from conftest import discover_tests
from tinyc import ParseError, TinyCError, parse
from tinyc.ast import (
    Assign,
    BinaryOp,
    Call,
    ExprStmt,
    FnDecl,
    IfStmt,
    IntLit,
    ReturnStmt,
    UnaryOp,
    Var,
    VarDecl,
    WhileStmt,
    to_dict,
)

PARSE_DIR = Path(__file__).parent / "02_parse"


def pytest_generate_tests(metafunc):
    """Parametrize tests over parse test files."""
    if "parse_input" in metafunc.fixturenames:
        params = [
            pytest.param(input_code, expected, id=test_id)
            for test_id, input_code, expected in discover_tests(PARSE_DIR)
        ]
        metafunc.parametrize("parse_input,parse_expected", params)


def test_parse(parse_input: str, parse_expected: str):
    """Verify parser produces expected result."""
    try:
        parse(parse_input)
        parse_error = None
    except TinyCError as e:
        parse_error = e

    if parse_expected == "ok":
        if parse_error is not None:
            pytest.fail(f"Expected ok, got parse error: {parse_error}")
    elif parse_expected.startswith("error:"):
        expected_msg = parse_expected[6:].strip()
        if parse_error is None:
            pytest.fail(
                f"Expected error containing '{expected_msg}', but parsing succeeded"
            )
        if expected_msg.lower() not in str(parse_error).lower():
            pytest.fail(f"Expected error containing '{expected_msg}', got: {parse_error}")
    else:
        pytest.fail(f"Unknown expected format: {parse_expected}")


def _expr(source: str):
    program = parse(source)
    st = program.stmts[0]
    assert isinstance(st, ExprStmt)
    return st.expr


def test_multiplication_binds_tighter_than_addition():
    e = _expr("1 + 2 * 3;")
    assert isinstance(e, BinaryOp) and e.op == "+"
    assert isinstance(e.right, BinaryOp) and e.right.op == "*"


def test_subtraction_is_left_associative():
    e = _expr("10 - 4 - 3;")
    assert isinstance(e, BinaryOp) and e.op == "-"
    assert isinstance(e.left, BinaryOp) and e.left.op == "-"
    assert isinstance(e.right, IntLit) and e.right.value == 3


def test_relational_binds_tighter_than_equality():
    e = _expr("a < b == c > d;")
    assert isinstance(e, BinaryOp) and e.op == "=="
    assert isinstance(e.left, BinaryOp) and e.left.op == "<"
    assert isinstance(e.right, BinaryOp) and e.right.op == ">"


def test_unary_minus_binds_tighter_than_multiplication():
    e = _expr("-a * b;")
    assert isinstance(e, BinaryOp) and e.op == "*"
    assert isinstance(e.left, UnaryOp) and e.left.op == "-"


def test_assignment_is_right_associative():
    e = _expr("a = b = 3;")
    assert isinstance(e, Assign) and e.name == "a"
    assert isinstance(e.value, Assign) and e.value.name == "b"


def test_parenthesized_expression_overrides_precedence():
    e = _expr("(1 + 2) * 3;")
    assert isinstance(e, BinaryOp) and e.op == "*"
    assert isinstance(e.left, BinaryOp) and e.left.op == "+"


def test_function_declaration_shape():
    program = parse("int add(int a, int b) { return a + b; }")
    fn = program.stmts[0]
    assert isinstance(fn, FnDecl)
    assert fn.name == "add"
    assert fn.params == ["a", "b"]
    assert isinstance(fn.body.body[0], ReturnStmt)


def test_call_arguments_in_order():
    e = _expr('printf("%d %d", x, 2);')
    assert isinstance(e, Call) and e.name == "printf"
    assert len(e.args) == 3
    assert isinstance(e.args[1], Var) and e.args[1].name == "x"


def test_if_without_else():
    st = parse("if (x) { }").stmts[0]
    assert isinstance(st, IfStmt)
    assert st.else_body is None


def test_while_body_is_block():
    st = parse("while (x < 3) { x = x + 1; }").stmts[0]
    assert isinstance(st, WhileStmt)
    assert len(st.body.body) == 1


def test_positions_recorded():
    program = parse("\n  int x = 1;")
    st = program.stmts[0]
    assert isinstance(st, VarDecl)
    assert (st.pos.line, st.pos.col) == (2, 3)


def test_error_reports_position():
    with pytest.raises(ParseError) as exc:
        parse("int x = 1;\nint y = ;")
    assert exc.value.line == 2
    assert exc.value.col == 9
    assert "line 2 col 9" in str(exc.value)


def test_to_dict():
    d = to_dict(parse("int x = -1;"))
    assert d == {
        "_type": "Program",
        "stmts": [
            {
                "_type": "VarDecl",
                "pos": [1, 1],
                "name": "x",
                "value": {
                    "_type": "UnaryOp",
                    "pos": [1, 9],
                    "op": "-",
                    "operand": {"_type": "IntLit", "pos": [1, 10], "value": 1},
                },
            }
        ],
    }


def test_deeply_nested_expression_is_syntax_error():
    source = "int x = " + "(" * 5000 + "1" + ")" * 5000 + ";"
    with pytest.raises(ParseError) as exc:
        parse(source)
    assert "expression nested too deeply" in str(exc.value)
    assert exc.value.line == 1


def test_deeply_nested_expression_reports_without_running(run_tc):
    source = 'puts("ran");\nint x = ' + "-" * 5000 + "1;"
    result = run_tc(source)
    assert result.exit_code == 1
    assert result.stdout == b""
    assert result.stderr.startswith(b"syntax error: expression nested too deeply at line 2")


def test_min_int_literal_needs_unary_minus():
    st = parse("int x = -9223372036854775808;").stmts[0]
    assert isinstance(st, VarDecl)
    assert isinstance(st.value, UnaryOp)
    assert isinstance(st.value.operand, IntLit)
    assert st.value.operand.value == 9223372036854775808


@pytest.mark.parametrize(
    "source",
    [
        "int x = 9223372036854775808;",
        "int x = 1 - 9223372036854775808;",
        "int x = -(9223372036854775808);",
    ],
)
def test_unsigned_min_int_literal_rejected(source: str):
    with pytest.raises(ParseError) as exc:
        parse(source)
    assert "integer literal out of range" in str(exc.value)
