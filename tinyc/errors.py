"""TinyC diagnostics — one exception class per error kind."""

from __future__ import annotations

from .ast import Pos


class TinyCError(Exception):
    """Base error for TinyC lexing, parsing and evaluation."""

    def __init__(self, msg: str, pos: Pos | None = None):
        super().__init__(msg)
        self.msg = msg
        self.pos = pos

    def __str__(self) -> str:
        if self.pos is None:
            return self.msg
        return f"{self.msg} at line {self.pos.line} col {self.pos.col}"

    def locate(self, pos: Pos) -> TinyCError:
        """Attach a position if the error was raised without one."""
        if self.pos is None:
            self.pos = pos
        return self


class LexError(TinyCError):
    """Malformed token or unterminated string literal."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(msg, Pos(line, col))
        self.line: int = line
        self.col: int = col


class ParseError(TinyCError):
    """Grammar violation, reported with expected-vs-found detail."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(msg, Pos(line, col))
        self.line: int = line
        self.col: int = col


class TinyCRuntimeError(TinyCError):
    """Error that aborts a running program."""


class UndefinedNameError(TinyCRuntimeError):
    """Variable or function never declared or not visible."""


class RedeclarationError(TinyCRuntimeError):
    """Name declared twice in the same scope."""


class NotCallableError(TinyCRuntimeError):
    """Call target is bound to something other than a function."""


class TypeMismatchError(TinyCRuntimeError):
    """Operator or native function applied to the wrong value kind."""


class DivisionByZeroError(TinyCRuntimeError):
    """Integer division with a zero divisor."""


class ArityError(TinyCRuntimeError):
    """Wrong argument count, or too few arguments for a format."""


class FormatDirectiveError(TinyCRuntimeError):
    """Unknown '%' directive in a format string."""


class ClosedHandleError(TinyCRuntimeError):
    """Operation on a file handle after fclose."""


class RecursionDepthError(TinyCRuntimeError):
    """Too many nested function calls."""


def error_label(e: TinyCError) -> str:
    """Diagnostic prefix naming the phase that failed."""
    if isinstance(e, LexError):
        return "lexical error"
    if isinstance(e, ParseError):
        return "syntax error"
    return "runtime error"
