"""TinyC standard library — native functions installed into the global scope.

Every native receives already-evaluated arguments and talks to the host only
through `rt.console` and `rt.fs`. Host failures are reported the C way, by a
sentinel return value or a handle's error flag; misuse (wrong arity, wrong
argument kind, a closed handle) raises.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ArityError, ClosedHandleError, FormatDirectiveError, TypeMismatchError
from .host import FILE_MODES, FileHandle
from .values import (
    FALSE,
    NULL,
    TRUE,
    NativeImpl,
    Value,
    VBool,
    VFile,
    VInt,
    VStr,
    display,
)

if TYPE_CHECKING:
    from .runtime import Runtime


# ============================================================
# Argument checking
# ============================================================


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def _arity(name: str, args: list[Value], n: int) -> None:
    if len(args) != n:
        raise ArityError(
            f"{name} expects {n} argument{_plural(n)}, got {len(args)}"
        )


def _arity_at_least(name: str, args: list[Value], n: int) -> None:
    if len(args) < n:
        raise ArityError(
            f"{name} expects at least {n} argument{_plural(n)}, got {len(args)}"
        )


def _str_arg(name: str, args: list[Value], i: int) -> str:
    arg = args[i]
    if not isinstance(arg, VStr):
        raise TypeMismatchError(
            f"{name}: argument {i + 1} must be string, got {arg.kind()}"
        )
    return arg.value


def _int_arg(name: str, args: list[Value], i: int) -> int:
    arg = args[i]
    if not isinstance(arg, VInt):
        raise TypeMismatchError(f"{name}: argument {i + 1} must be int, got {arg.kind()}")
    return arg.value


def _file_arg(name: str, args: list[Value], i: int) -> FileHandle:
    arg = args[i]
    if not isinstance(arg, VFile):
        raise TypeMismatchError(
            f"{name}: argument {i + 1} must be file, got {arg.kind()}"
        )
    if arg.handle.closed:
        raise ClosedHandleError(f"{name}: file handle '{arg.handle.path}' is closed")
    return arg.handle


def _first_char(v: Value) -> str:
    return display(v)[:1]


# ============================================================
# Formatting
# ============================================================


def format_string(name: str, fmt: str, args: list[Value]) -> str:
    """Expand %s, %d and %% in fmt, consuming args left to right."""
    out: list[str] = []
    arg_idx = 0
    i = 0
    n = len(fmt)
    while i < n:
        c = fmt[i]
        if c != "%":
            out.append(c)
            i += 1
            continue
        if i + 1 >= n:
            raise FormatDirectiveError(f"{name}: format string ends with a lone '%'")
        directive = fmt[i + 1]
        i += 2
        if directive == "%":
            out.append("%")
            continue
        if directive != "s" and directive != "d":
            raise FormatDirectiveError(
                f"{name}: unknown format directive '%{directive}'"
            )
        if arg_idx >= len(args):
            raise ArityError(
                f"{name}: not enough arguments for format "
                f"('%{directive}' needs argument {arg_idx + 1})"
            )
        arg = args[arg_idx]
        arg_idx += 1
        if directive == "d" and not isinstance(arg, VInt):
            raise TypeMismatchError(f"{name}: '%d' expects int, got {arg.kind()}")
        out.append(display(arg))
    return "".join(out)


# ============================================================
# Console
# ============================================================


def _printf(rt: Runtime, args: list[Value]) -> Value:
    _arity_at_least("printf", args, 1)
    fmt = _str_arg("printf", args, 0)
    rt.console.write(format_string("printf", fmt, args[1:]))
    return NULL


def _sprintf(rt: Runtime, args: list[Value]) -> Value:
    _arity_at_least("sprintf", args, 1)
    fmt = _str_arg("sprintf", args, 0)
    return VStr(format_string("sprintf", fmt, args[1:]))


def _puts(rt: Runtime, args: list[Value]) -> Value:
    _arity("puts", args, 1)
    rt.console.write(display(args[0]) + "\n")
    return NULL


def _putchar(rt: Runtime, args: list[Value]) -> Value:
    _arity("putchar", args, 1)
    rt.console.write(_first_char(args[0]))
    return NULL


def _getchar(rt: Runtime, args: list[Value]) -> Value:
    _arity("getchar", args, 0)
    ch = rt.console.read_char()
    if ch is None:
        return NULL
    return VStr(ch)


# ============================================================
# Files
# ============================================================


def _fopen(rt: Runtime, args: list[Value]) -> Value:
    _arity("fopen", args, 2)
    path = _str_arg("fopen", args, 0)
    mode = _str_arg("fopen", args, 1)
    if mode not in FILE_MODES:
        return NULL
    try:
        stream = rt.fs.open(path, mode)
    except OSError:
        return NULL
    return VFile(FileHandle(path, mode, stream))


def _fclose(rt: Runtime, args: list[Value]) -> Value:
    _arity("fclose", args, 1)
    _file_arg("fclose", args, 0).close()
    return VInt(0)


def _fprintf(rt: Runtime, args: list[Value]) -> Value:
    _arity_at_least("fprintf", args, 2)
    handle = _file_arg("fprintf", args, 0)
    fmt = _str_arg("fprintf", args, 1)
    handle.write("fprintf", format_string("fprintf", fmt, args[2:]))
    return NULL


def _fputs(rt: Runtime, args: list[Value]) -> Value:
    _arity("fputs", args, 2)
    text = _str_arg("fputs", args, 0)
    _file_arg("fputs", args, 1).write("fputs", text)
    return NULL


def _make_fputc(name: str) -> NativeImpl:
    def _fputc(rt: Runtime, args: list[Value]) -> Value:
        _arity(name, args, 2)
        handle = _file_arg(name, args, 1)
        ch = _first_char(args[0])
        if ch:
            handle.write(name, ch)
        return NULL

    return _fputc


def _fgets(rt: Runtime, args: list[Value]) -> Value:
    _arity("fgets", args, 1)
    line = _file_arg("fgets", args, 0).read_line("fgets")
    if line is None:
        return NULL
    return VStr(line)


def _make_fgetc(name: str) -> NativeImpl:
    def _fgetc(rt: Runtime, args: list[Value]) -> Value:
        _arity(name, args, 1)
        ch = _file_arg(name, args, 0).read_char(name)
        if ch is None:
            return NULL
        return VStr(ch)

    return _fgetc


def _feof(rt: Runtime, args: list[Value]) -> Value:
    _arity("feof", args, 1)
    return VBool(_file_arg("feof", args, 0).eof)


def _ferror(rt: Runtime, args: list[Value]) -> Value:
    _arity("ferror", args, 1)
    return VBool(_file_arg("ferror", args, 0).error)


def _ftell(rt: Runtime, args: list[Value]) -> Value:
    _arity("ftell", args, 1)
    return VInt(_file_arg("ftell", args, 0).tell("ftell"))


def _fseek(rt: Runtime, args: list[Value]) -> Value:
    _arity("fseek", args, 3)
    handle = _file_arg("fseek", args, 0)
    offset = _int_arg("fseek", args, 1)
    whence = _int_arg("fseek", args, 2)
    return VInt(0 if handle.seek("fseek", offset, whence) else -1)


def _rewind(rt: Runtime, args: list[Value]) -> Value:
    _arity("rewind", args, 1)
    _file_arg("rewind", args, 0).rewind("rewind")
    return NULL


# ============================================================
# Filesystem
# ============================================================


def _rename(rt: Runtime, args: list[Value]) -> Value:
    _arity("rename", args, 2)
    old = _str_arg("rename", args, 0)
    new = _str_arg("rename", args, 1)
    try:
        rt.fs.rename(old, new)
    except OSError:
        return FALSE
    return TRUE


def _remove(rt: Runtime, args: list[Value]) -> Value:
    _arity("remove", args, 1)
    path = _str_arg("remove", args, 0)
    try:
        rt.fs.remove(path)
    except OSError:
        return FALSE
    return TRUE


NATIVES: dict[str, NativeImpl] = {
    "printf": _printf,
    "sprintf": _sprintf,
    "puts": _puts,
    "putchar": _putchar,
    "getchar": _getchar,
    "fopen": _fopen,
    "fclose": _fclose,
    "fprintf": _fprintf,
    "fputs": _fputs,
    "fputc": _make_fputc("fputc"),
    "putc": _make_fputc("putc"),
    "fgets": _fgets,
    "fgetc": _make_fgetc("fgetc"),
    "getc": _make_fgetc("getc"),
    "feof": _feof,
    "ferror": _ferror,
    "ftell": _ftell,
    "fseek": _fseek,
    "rewind": _rewind,
    "rename": _rename,
    "remove": _remove,
}
