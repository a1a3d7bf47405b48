"""TinyC interpreter — public API."""

from __future__ import annotations

from .errors import (
    LexError as LexError,
    ParseError as ParseError,
    TinyCError as TinyCError,
    TinyCRuntimeError as TinyCRuntimeError,
)
from .host import (
    BufferConsole as BufferConsole,
    Console as Console,
    OsFileSystem as OsFileSystem,
)
from .parse import parse as parse
from .runtime import RunResult as RunResult, run as run, run_source as run_source
from .tokens import tokenize as tokenize
