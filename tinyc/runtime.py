"""TinyC runtime — evaluate a parsed program by walking the tree.

Statements return a control signal (`PROCEED` or a `Return` carrying a value)
that every compound statement checks and passes upward; `return` never
unwinds through Python exceptions. Errors do: any `TinyCRuntimeError`
aborts the whole run and is turned into a diagnostic by `run()`.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass

from .ast import (
    Assign,
    BinaryOp,
    Block,
    BoolLit,
    Call,
    Expr,
    ExprStmt,
    FnDecl,
    IfStmt,
    IntLit,
    NullLit,
    Pos,
    Program,
    ReturnStmt,
    Stmt,
    StringLit,
    UnaryOp,
    Var,
    VarDecl,
    WhileStmt,
)
from .errors import (
    ArityError,
    DivisionByZeroError,
    NotCallableError,
    RecursionDepthError,
    RedeclarationError,
    TinyCError,
    TinyCRuntimeError,
    TypeMismatchError,
    UndefinedNameError,
    error_label,
)
from .host import BufferConsole, Console, FileSystem, OsFileSystem
from .parse import parse
from .stdlib import NATIVES
from .values import (
    FALSE,
    NULL,
    TRUE,
    Value,
    VBool,
    VFunc,
    VInt,
    VNative,
    VNull,
    VStr,
    value_eq,
    wrap_int,
)

# Python frames needed per TinyC call, roughly; the interpreter raises the
# host recursion limit to fit MAX_CALL_DEPTH nested calls.
_FRAMES_PER_CALL = 12
MAX_CALL_DEPTH = 1000


# ============================================================
# Control flow signals
# ============================================================


class Signal:
    """Outcome of executing a statement."""


class _Proceed(Signal):
    def __repr__(self) -> str:
        return "PROCEED"


PROCEED = _Proceed()


@dataclass
class Return(Signal):
    value: Value


# ============================================================
# Scopes
# ============================================================


class Scope:
    """Name-to-value mapping with a link to the enclosing scope."""

    def __init__(self, parent: Scope | None = None):
        self.vars: dict[str, Value] = {}
        self.parent = parent

    def declare(self, name: str, value: Value, pos: Pos | None = None) -> None:
        if name in self.vars:
            raise RedeclarationError(f"'{name}' is already declared in this scope", pos)
        self.vars[name] = value

    def lookup(self, name: str) -> Value | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent
        return None

    def assign(self, name: str, value: Value) -> bool:
        """Mutate the nearest binding of name; False if none is visible."""
        scope: Scope | None = self
        while scope is not None:
            if name in scope.vars:
                scope.vars[name] = value
                return True
            scope = scope.parent
        return False


# ============================================================
# Results
# ============================================================


@dataclass
class RunResult:
    exit_code: int
    stdout: bytes
    stderr: bytes


def exit_status(value: Value) -> int:
    """Process status for a value returned to the top level."""
    if isinstance(value, VInt):
        return value.value
    if isinstance(value, VNull):
        return 0
    return 1


def run(
    program: Program,
    *,
    console: Console | None = None,
    fs: FileSystem | None = None,
) -> RunResult:
    """Run a parsed program; runtime errors become exit code 1 plus a diagnostic."""
    con = console if console is not None else BufferConsole()
    rt = Runtime(con, fs if fs is not None else OsFileSystem())
    stderr = b""
    old_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(max(old_limit, MAX_CALL_DEPTH * _FRAMES_PER_CALL))
    try:
        code = rt.run_program(program)
    except TinyCRuntimeError as e:
        code = 1
        stderr = (error_label(e) + ": " + str(e) + "\n").encode("utf-8")
    except RecursionError:
        code = 1
        stderr = b"runtime error: maximum recursion depth exceeded\n"
    finally:
        sys.setrecursionlimit(old_limit)
    stdout = con.output() if isinstance(con, BufferConsole) else b""
    return RunResult(code, stdout, stderr)


def run_source(
    source: str,
    *,
    console: Console | None = None,
    fs: FileSystem | None = None,
) -> RunResult:
    """Parse and run source text; nothing executes if it fails to parse."""
    try:
        program = parse(source)
    except TinyCError as e:
        msg = error_label(e) + ": " + str(e) + "\n"
        return RunResult(1, b"", msg.encode("utf-8"))
    return run(program, console=console, fs=fs)


# ============================================================
# Evaluator
# ============================================================


def _int_div_trunc(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q


class Runtime:
    def __init__(self, console: Console, fs: FileSystem):
        self.console = console
        self.fs = fs
        self.globals = Scope()
        self.depth = 0
        for name, impl in NATIVES.items():
            self.globals.declare(name, VNative(name, impl))

    # ---- Running -----------------------------------------------------------

    def run_program(self, program: Program) -> int:
        """Execute top-level statements in order and derive the exit status.

        A top-level `return` stops the program with its value as status.
        Otherwise the status is the Int result of the last bare top-level
        call to a user function, such as `main();`. Native calls never
        change it.
        """
        status = 0
        for st in program.stmts:
            if isinstance(st, ExprStmt) and isinstance(st.expr, Call):
                entry = self.globals.lookup(st.expr.name)
                result = self.eval_expr(st.expr, self.globals)
                if isinstance(entry, VFunc):
                    status = result.value if isinstance(result, VInt) else 0
                continue
            sig = self.exec_stmt(st, self.globals)
            if isinstance(sig, Return):
                return exit_status(sig.value)
        return status

    # ---- Functions ---------------------------------------------------------

    def call(self, fn: Value, args: list[Value], pos: Pos) -> Value:
        if isinstance(fn, VNative):
            try:
                return fn.impl(self, args)
            except TinyCError as e:
                e.locate(pos)
                raise
        if isinstance(fn, VFunc):
            return self._call_fn(fn, args, pos)
        raise NotCallableError(f"value of kind {fn.kind()} is not callable", pos)

    def _call_fn(self, fn: VFunc, args: list[Value], pos: Pos) -> Value:
        decl = fn.decl
        if len(args) != len(decl.params):
            raise ArityError(
                f"function '{decl.name}' expects {len(decl.params)} "
                f"argument{'' if len(decl.params) == 1 else 's'}, got {len(args)}",
                pos,
            )
        if self.depth >= MAX_CALL_DEPTH:
            raise RecursionDepthError(
                f"maximum call depth ({MAX_CALL_DEPTH}) exceeded in '{decl.name}'", pos
            )
        # Frames see globals and their own locals, never the caller's.
        frame = Scope(fn.scope)
        for name, arg in zip(decl.params, args):
            frame.declare(name, arg, decl.pos)
        self.depth += 1
        try:
            sig = self._exec_stmts(decl.body.body, frame)
        finally:
            self.depth -= 1
        if isinstance(sig, Return):
            return sig.value
        return NULL

    # ---- Statements --------------------------------------------------------

    def exec_block(self, block: Block, scope: Scope) -> Signal:
        return self._exec_stmts(block.body, Scope(scope))

    def _exec_stmts(self, stmts: list[Stmt], scope: Scope) -> Signal:
        for st in stmts:
            sig = self.exec_stmt(st, scope)
            if sig is not PROCEED:
                return sig
        return PROCEED

    def exec_stmt(self, st: Stmt, scope: Scope) -> Signal:
        if isinstance(st, VarDecl):
            val = self.eval_expr(st.value, scope)
            scope.declare(st.name, val, st.pos)
            return PROCEED

        if isinstance(st, ExprStmt):
            self.eval_expr(st.expr, scope)
            return PROCEED

        if isinstance(st, ReturnStmt):
            if st.value is None:
                return Return(NULL)
            return Return(self.eval_expr(st.value, scope))

        if isinstance(st, Block):
            return self.exec_block(st, scope)

        if isinstance(st, IfStmt):
            if self._eval_cond(st.cond, scope, "if"):
                return self.exec_block(st.then_body, scope)
            if st.else_body is not None:
                return self.exec_block(st.else_body, scope)
            return PROCEED

        if isinstance(st, WhileStmt):
            while self._eval_cond(st.cond, scope, "while"):
                sig = self.exec_block(st.body, scope)
                if sig is not PROCEED:
                    return sig
            return PROCEED

        if isinstance(st, FnDecl):
            scope.declare(st.name, VFunc(st, self.globals), st.pos)
            return PROCEED

        raise TinyCRuntimeError("unsupported statement", st.pos)

    def _eval_cond(self, cond: Expr, scope: Scope, what: str) -> bool:
        val = self.eval_expr(cond, scope)
        if not isinstance(val, VBool):
            raise TypeMismatchError(
                f"{what} condition must be bool, got {val.kind()}", cond.pos
            )
        return val.value

    # ---- Expressions -------------------------------------------------------

    def eval_expr(self, expr: Expr, scope: Scope) -> Value:
        if isinstance(expr, IntLit):
            return VInt(wrap_int(expr.value))
        if isinstance(expr, StringLit):
            return VStr(expr.value)
        if isinstance(expr, BoolLit):
            return TRUE if expr.value else FALSE
        if isinstance(expr, NullLit):
            return NULL

        if isinstance(expr, Var):
            val = scope.lookup(expr.name)
            if val is None:
                raise UndefinedNameError(f"undefined variable '{expr.name}'", expr.pos)
            return val

        if isinstance(expr, Assign):
            val = self.eval_expr(expr.value, scope)
            if not scope.assign(expr.name, val):
                raise UndefinedNameError(
                    f"assignment to undeclared variable '{expr.name}'", expr.pos
                )
            return val

        if isinstance(expr, UnaryOp):
            operand = self.eval_expr(expr.operand, scope)
            if not isinstance(operand, VInt):
                raise TypeMismatchError(
                    f"unary '{expr.op}' requires int operand, got {operand.kind()}",
                    expr.pos,
                )
            return VInt(wrap_int(-operand.value))

        if isinstance(expr, BinaryOp):
            left = self.eval_expr(expr.left, scope)
            right = self.eval_expr(expr.right, scope)
            return self._eval_binary(expr.op, left, right, pos=expr.pos)

        if isinstance(expr, Call):
            return self._eval_call(expr, scope)

        raise TinyCRuntimeError("unsupported expression", expr.pos)

    def _eval_call(self, call: Call, scope: Scope) -> Value:
        # Only top-level names are callable.
        fn = self.globals.lookup(call.name)
        if fn is None:
            raise UndefinedNameError(f"undefined function '{call.name}'", call.pos)
        if not isinstance(fn, (VFunc, VNative)):
            raise NotCallableError(
                f"'{call.name}' is not a function (it is {fn.kind()})", call.pos
            )
        args = [self.eval_expr(a, scope) for a in call.args]
        return self.call(fn, args, call.pos)

    def _eval_binary(self, op: str, left: Value, right: Value, *, pos: Pos) -> Value:
        if op == "==":
            return VBool(value_eq(left, right))
        if op == "!=":
            return VBool(not value_eq(left, right))

        if not isinstance(left, VInt) or not isinstance(right, VInt):
            raise TypeMismatchError(
                f"operator '{op}' requires int operands, got "
                f"{left.kind()} and {right.kind()}",
                pos,
            )
        a = left.value
        b = right.value
        if op == "<":
            return VBool(a < b)
        if op == ">":
            return VBool(a > b)
        if op == "+":
            return VInt(wrap_int(a + b))
        if op == "-":
            return VInt(wrap_int(a - b))
        if op == "*":
            return VInt(wrap_int(a * b))
        if op == "/":
            if b == 0:
                raise DivisionByZeroError("division by zero", pos)
            return VInt(wrap_int(_int_div_trunc(a, b)))
        raise TinyCRuntimeError(f"unknown operator '{op}'", pos)
