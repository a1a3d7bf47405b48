"""TinyC runtime values — the single dynamically tagged type the language manipulates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from .ast import FnDecl

if TYPE_CHECKING:
    from .host import FileHandle
    from .runtime import Runtime, Scope


INT_BITS = 64
_INT_MOD = 1 << INT_BITS
_INT_SIGN = 1 << (INT_BITS - 1)


def wrap_int(n: int) -> int:
    """Wrap to a signed 64-bit integer."""
    n &= _INT_MOD - 1
    if n >= _INT_SIGN:
        n -= _INT_MOD
    return n


class Value:
    """A runtime value with a concrete variant tag."""

    def kind(self) -> str:
        raise NotImplementedError

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass(eq=False)
class VInt(Value):
    value: int

    def kind(self) -> str:
        return "int"

    def to_string(self) -> str:
        return str(self.value)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VInt) and self.value == other.value


@dataclass(eq=False)
class VStr(Value):
    value: str

    def kind(self) -> str:
        return "string"

    def to_string(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VStr) and self.value == other.value


@dataclass(eq=False)
class VBool(Value):
    value: bool

    def kind(self) -> str:
        return "bool"

    def to_string(self) -> str:
        return "true" if self.value else "false"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VBool) and self.value == other.value


@dataclass(eq=False)
class VNull(Value):
    def kind(self) -> str:
        return "null"

    def to_string(self) -> str:
        return "null"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VNull)


@dataclass(eq=False)
class VFunc(Value):
    """User function: parameter names + body, closed over the global scope only."""

    decl: FnDecl
    scope: Scope

    def kind(self) -> str:
        return "function"

    def to_string(self) -> str:
        return f"<fn {self.decl.name}>"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VFunc) and self.decl is other.decl


NativeImpl = Callable[["Runtime", list[Value]], Value]


@dataclass(eq=False)
class VNative(Value):
    """Standard-library entry, keyed by name."""

    name: str
    impl: NativeImpl

    def kind(self) -> str:
        return "function"

    def to_string(self) -> str:
        return f"<native fn {self.name}>"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VNative) and self.name == other.name


@dataclass(eq=False)
class VFile(Value):
    """Reference to a shared file handle; copies alias the same handle."""

    handle: FileHandle

    def kind(self) -> str:
        return "file"

    def to_string(self) -> str:
        return f"<file {self.handle.path}>"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, VFile) and self.handle is other.handle


NULL = VNull()
TRUE = VBool(True)
FALSE = VBool(False)


def value_eq(a: Value, b: Value) -> bool:
    """Structural equality: same variant and same payload, never an error."""
    return a == b


def display(v: Value) -> str:
    """Text appended by the '%s' directive."""
    return v.to_string()
