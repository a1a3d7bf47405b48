"""Tokenizer tests."""

import pytest

from tinyc import LexError, tokenize
from tinyc.tokens import TK_EOF, TK_IDENT, TK_INT, TK_OP, TK_STRING


def _kinds(source: str) -> list[tuple[str, str]]:
    return [(t.type, t.value) for t in tokenize(source)]


def test_declaration_and_if():
    assert _kinds("int x = 5; if (x > 10) { return x; }") == [
        ("int", "int"),
        (TK_IDENT, "x"),
        (TK_OP, "="),
        (TK_INT, "5"),
        (TK_OP, ";"),
        ("if", "if"),
        (TK_OP, "("),
        (TK_IDENT, "x"),
        (TK_OP, ">"),
        (TK_INT, "10"),
        (TK_OP, ")"),
        (TK_OP, "{"),
        ("return", "return"),
        (TK_IDENT, "x"),
        (TK_OP, ";"),
        (TK_OP, "}"),
        (TK_EOF, ""),
    ]


def test_equality_operators_are_greedy():
    assert _kinds("a == b != c = d") == [
        (TK_IDENT, "a"),
        (TK_OP, "=="),
        (TK_IDENT, "b"),
        (TK_OP, "!="),
        (TK_IDENT, "c"),
        (TK_OP, "="),
        (TK_IDENT, "d"),
        (TK_EOF, ""),
    ]


def test_literal_keywords():
    kinds = [t.type for t in tokenize("true false null while else")]
    assert kinds == ["true", "false", "null", "while", "else", TK_EOF]


def test_negative_number_is_two_tokens():
    assert _kinds("-42") == [(TK_OP, "-"), (TK_INT, "42"), (TK_EOF, "")]


def test_string_escapes_decoded():
    toks = tokenize(r'"a\nb\t\"q\"\\\r"')
    assert toks[0].type == TK_STRING
    assert toks[0].value == 'a\nb\t"q"\\\r'


def test_comment_skipped_to_end_of_line():
    assert _kinds("x // y = 1;\nz") == [
        (TK_IDENT, "x"),
        (TK_IDENT, "z"),
        (TK_EOF, ""),
    ]


def test_slash_alone_is_division():
    assert _kinds("a / b")[1] == (TK_OP, "/")


def test_positions_are_one_indexed():
    toks = tokenize("int x;\n  y")
    assert (toks[0].line, toks[0].col) == (1, 1)
    assert (toks[1].line, toks[1].col) == (1, 5)
    y = toks[3]
    assert (y.value, y.line, y.col) == ("y", 2, 3)


def test_tokenize_is_restartable():
    src = 'printf("%d\\n", 1);'
    assert _kinds(src) == _kinds(src)


@pytest.mark.parametrize(
    "source,message,line",
    [
        ('"abc', "unterminated string", 1),
        ('x\n"abc\n"', "unterminated string", 2),
        ('"bad \\q"', "invalid escape", 1),
        ("x = 1 @ 2;", "unexpected character", 1),
        ("!x", "unexpected character", 1),
        ("12abc", "invalid integer literal", 1),
        ("99999999999999999999", "out of range", 1),
    ],
)
def test_lex_errors(source: str, message: str, line: int):
    with pytest.raises(LexError) as exc:
        tokenize(source)
    assert message in str(exc.value)
    assert exc.value.line == line
