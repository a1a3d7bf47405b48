"""TinyC AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass, fields


# ============================================================
# POSITION
# ============================================================


@dataclass
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""

    pos: Pos


@dataclass
class VarDecl(Stmt):
    """int name = expr;"""

    name: str
    value: Expr


@dataclass
class ExprStmt(Stmt):
    """Bare expression as statement."""

    expr: Expr


@dataclass
class Block(Stmt):
    """{ ... } introduces a new lexical scope."""

    body: list[Stmt]


@dataclass
class IfStmt(Stmt):
    """if (cond) { ... } else { ... }"""

    cond: Expr
    then_body: Block
    else_body: Block | None


@dataclass
class WhileStmt(Stmt):
    """while (cond) { ... }"""

    cond: Expr
    body: Block


@dataclass
class ReturnStmt(Stmt):
    """return expr?;"""

    value: Expr | None


@dataclass
class FnDecl(Stmt):
    """int name(int a, int b) { body }, top level only."""

    name: str
    params: list[str]
    body: Block


@dataclass
class Program:
    """Top-level statements in source order."""

    stmts: list[Stmt]


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""

    pos: Pos


@dataclass
class IntLit(Expr):
    value: int


@dataclass
class StringLit(Expr):
    value: str


@dataclass
class BoolLit(Expr):
    value: bool


@dataclass
class NullLit(Expr):
    pass


@dataclass
class Var(Expr):
    """Variable reference."""

    name: str


@dataclass
class Assign(Expr):
    """name = value; right-associative, yields the assigned value."""

    name: str
    value: Expr


@dataclass
class UnaryOp(Expr):
    op: str
    operand: Expr


@dataclass
class BinaryOp(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass
class Call(Expr):
    """name(args); the callee is always a bare name."""

    name: str
    args: list[Expr]


# ============================================================
# SERIALIZATION
# ============================================================


def to_dict(obj: object) -> object:
    """Recursively convert AST nodes to JSON-compatible dicts and lists."""
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj
    if isinstance(obj, list):
        return [to_dict(x) for x in obj]
    if isinstance(obj, Pos):
        return [obj.line, obj.col]
    d: dict[str, object] = {"_type": type(obj).__name__}
    for f in fields(obj):  # type: ignore[arg-type]
        d[f.name] = to_dict(getattr(obj, f.name))
    return d
