"""TinyC tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from .errors import LexError


# Token type constants
TK_INT = "INT"
TK_STRING = "STRING"
TK_IDENT = "IDENT"
TK_OP = "OP"
TK_EOF = "EOF"

# Keyword tokens use the keyword text as their type.
KEYWORDS: set[str] = {
    "else",
    "false",
    "if",
    "int",
    "null",
    "return",
    "true",
    "while",
}

# Multi-character operators, matched before single characters
MULTI_OPS: list[str] = [
    "==",
    "!=",
]

SINGLE_OPS: set[str] = {
    "+",
    "-",
    "*",
    "/",
    "=",
    "<",
    ">",
    "(",
    ")",
    "{",
    "}",
    ",",
    ";",
}

# Magnitude of the most negative 64-bit integer; the sign is applied by unary '-'
INT_LITERAL_MAX = 2**63

ESCAPE_MAP: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    '"': '"',
}


class Token:
    """A token with type, value, and position."""

    def __init__(self, type_: str, value: str, line: int, col: int):
        self.type: str = type_
        self.value: str = value
        self.line: int = line
        self.col: int = col

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.value)
            + ", "
            + str(self.line)
            + ", "
            + str(self.col)
            + ")"
        )

    def describe(self) -> str:
        """Human-readable form for diagnostics."""
        if self.type == TK_EOF:
            return "end of input"
        if self.type == TK_STRING:
            return "string " + repr(self.value)
        return "'" + self.value + "'"


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str) -> list[Token]:
    """Tokenize TinyC source into a flat list ending with TK_EOF."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    col = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            col = 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r" or c == "\f" or c == "\v":
            pos += 1
            col += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line
        start_col = col

        # Integer literal; a leading '-' is unary minus in the grammar
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
                col += 1
            if pos < length and _is_alpha(source[pos]):
                raise LexError(
                    "invalid integer literal: "
                    + repr(source[start_pos : pos + 1]),
                    start_line,
                    start_col,
                )
            raw = source[start_pos:pos]
            if int(raw) > INT_LITERAL_MAX:
                raise LexError("integer literal out of range", start_line, start_col)
            tokens.append(Token(TK_INT, raw, start_line, start_col))
            continue

        # String literal: "..."
        if c == '"':
            pos += 1
            col += 1
            chars: list[str] = []
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    raise LexError("unterminated string literal", start_line, start_col)
                if source[pos] == "\\":
                    if pos + 1 >= length:
                        raise LexError(
                            "unterminated string literal", start_line, start_col
                        )
                    esc = source[pos + 1]
                    if esc not in ESCAPE_MAP:
                        raise LexError("invalid escape: \\" + esc, line, col)
                    chars.append(ESCAPE_MAP[esc])
                    pos += 2
                    col += 2
                    continue
                chars.append(source[pos])
                pos += 1
                col += 1
            if pos >= length:
                raise LexError("unterminated string literal", start_line, start_col)
            pos += 1  # skip closing "
            col += 1
            tokens.append(Token(TK_STRING, "".join(chars), start_line, start_col))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
                col += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, start_line, start_col))
            else:
                tokens.append(Token(TK_IDENT, word, start_line, start_col))
            continue

        # Multi-character operators
        matched = False
        for op in MULTI_OPS:
            op_len = len(op)
            if source[pos : pos + op_len] == op:
                tokens.append(Token(TK_OP, op, start_line, start_col))
                pos += op_len
                col += op_len
                matched = True
                break
        if matched:
            continue

        # Single-character operators
        if c in SINGLE_OPS:
            tokens.append(Token(TK_OP, c, start_line, start_col))
            pos += 1
            col += 1
            continue

        raise LexError("unexpected character: " + repr(c), line, col)

    tokens.append(Token(TK_EOF, "", line, col))
    return tokens
