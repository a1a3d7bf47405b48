"""Host capabilities — console and filesystem access injected into the runtime.

The evaluator and the standard library never call the operating system
directly; they go through a `Console` and a `FileSystem`. The CLI wires these
to the real process streams and working directory, tests wire them to
in-memory buffers and temporary directories.
"""

from __future__ import annotations

import io
import os
from typing import BinaryIO

from .errors import ClosedHandleError


SEEK_WHENCE: dict[int, int] = {
    0: os.SEEK_SET,
    1: os.SEEK_CUR,
    2: os.SEEK_END,
}

# Python file modes backing each TinyC fopen mode; "w" also allows reading
# back through the same handle after fseek/rewind.
FILE_MODES: dict[str, str] = {
    "r": "rb",
    "w": "w+b",
}


def _utf8_len(lead: int) -> int:
    if lead < 0x80:
        return 1
    if lead >= 0xF0 and lead <= 0xF7:
        return 4
    if lead >= 0xE0:
        return 3 if lead <= 0xEF else 1
    if lead >= 0xC0:
        return 2
    return 1


def _peek_byte(stream: BinaryIO) -> int | None:
    """Next byte without consuming it, or None at end of stream."""
    peek = getattr(stream, "peek", None)
    if peek is not None:
        ahead = peek(1)[:1]
        return ahead[0] if ahead else None
    pos = stream.tell()
    ahead = stream.read(1)
    stream.seek(pos)
    return ahead[0] if ahead else None


def read_utf8_char(stream: BinaryIO) -> str | None:
    """Read one UTF-8 character, or None at end of stream.

    A malformed sequence yields U+FFFD for its lead byte only; the byte that
    broke the sequence is left unread for the next call.
    """
    first = stream.read(1)
    if not first:
        return None
    need = _utf8_len(first[0]) - 1
    buf = first
    for _ in range(need):
        nxt = _peek_byte(stream)
        if nxt is None or not 0x80 <= nxt < 0xC0:
            return "\ufffd"
        buf += stream.read(1)
    try:
        return buf.decode("utf-8")
    except UnicodeDecodeError:
        return "\ufffd"


# ============================================================
# Console
# ============================================================


class Console:
    """Standard input/output for getchar, putchar, puts and printf."""

    def __init__(self, stdin: BinaryIO, stdout: BinaryIO):
        self.stdin = stdin
        self.stdout = stdout

    def read_char(self) -> str | None:
        return read_utf8_char(self.stdin)

    def write(self, text: str) -> None:
        self.stdout.write(text.encode("utf-8"))
        self.stdout.flush()


class BufferConsole(Console):
    """In-memory console: stdin is fixed up front, stdout is captured."""

    def __init__(self, stdin: bytes = b""):
        self._out = io.BytesIO()
        super().__init__(io.BytesIO(stdin), self._out)

    def output(self) -> bytes:
        return self._out.getvalue()


# ============================================================
# Filesystem
# ============================================================


class FileSystem:
    """Filesystem operations available to fopen, rename and remove."""

    def open(self, path: str, mode: str) -> BinaryIO:
        raise NotImplementedError

    def rename(self, old: str, new: str) -> None:
        raise NotImplementedError

    def remove(self, path: str) -> None:
        raise NotImplementedError


class OsFileSystem(FileSystem):
    """Real filesystem; relative paths resolve against root or the working directory."""

    def __init__(self, root: str | None = None):
        self.root = root

    def resolve(self, path: str) -> str:
        if self.root is None or os.path.isabs(path):
            return path
        return os.path.join(self.root, path)

    def open(self, path: str, mode: str) -> BinaryIO:
        return open(self.resolve(path), FILE_MODES[mode])

    def rename(self, old: str, new: str) -> None:
        os.rename(self.resolve(old), self.resolve(new))

    def remove(self, path: str) -> None:
        resolved = self.resolve(path)
        if os.path.isdir(resolved):
            raise IsADirectoryError(resolved)
        os.remove(resolved)


# ============================================================
# File handles
# ============================================================


class FileHandle:
    """Open-file state shared by every value referencing it.

    Host failures never raise: they set the error flag and the caller returns
    a sentinel. Only use after fclose raises.
    """

    def __init__(self, path: str, mode: str, stream: BinaryIO):
        self.path = path
        self.mode = mode
        self._stream: BinaryIO | None = stream
        self.eof = False
        self.error = False

    @property
    def closed(self) -> bool:
        return self._stream is None

    def stream(self, op: str) -> BinaryIO:
        if self._stream is None:
            raise ClosedHandleError(f"{op}: file handle '{self.path}' is closed")
        return self._stream

    def close(self) -> None:
        stream = self.stream("fclose")
        self._stream = None
        try:
            stream.close()
        except OSError:
            self.error = True

    def read_char(self, op: str) -> str | None:
        stream = self.stream(op)
        try:
            ch = read_utf8_char(stream)
        except OSError:
            self.error = True
            return None
        if ch is None:
            self.eof = True
        return ch

    def read_line(self, op: str) -> str | None:
        """Read through the next newline; None when already at end of file."""
        chars: list[str] = []
        while True:
            ch = self.read_char(op)
            if ch is None:
                break
            chars.append(ch)
            if ch == "\n":
                break
        if not chars:
            return None
        return "".join(chars)

    def write(self, op: str, text: str) -> bool:
        stream = self.stream(op)
        try:
            stream.write(text.encode("utf-8"))
            stream.flush()
        except OSError:
            self.error = True
            return False
        return True

    def tell(self, op: str) -> int:
        stream = self.stream(op)
        try:
            return stream.tell()
        except OSError:
            self.error = True
            return -1

    def seek(self, op: str, offset: int, whence: int) -> bool:
        stream = self.stream(op)
        if whence not in SEEK_WHENCE:
            self.error = True
            return False
        try:
            stream.seek(offset, SEEK_WHENCE[whence])
        except (OSError, ValueError, OverflowError):
            self.error = True
            return False
        self.eof = False
        return True

    def rewind(self, op: str) -> None:
        self.seek(op, 0, 0)
        self.error = False
