"""TinyC parser — recursive descent, one method per grammar production."""

from __future__ import annotations

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
from .errors import ParseError
from .tokens import (
    INT_LITERAL_MAX,
    TK_EOF,
    TK_IDENT,
    TK_INT,
    TK_OP,
    TK_STRING,
    Token,
    tokenize,
)

EQUALITY_OPS: set[str] = {"==", "!="}
RELATIONAL_OPS: set[str] = {"<", ">"}
ADDITIVE_OPS: set[str] = {"+", "-"}
MULTIPLICATIVE_OPS: set[str] = {"*", "/"}


class Parser:
    """Recursive descent parser for TinyC."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int) -> Token:
        idx = self.pos + offset
        if idx >= len(self.tokens):
            return self.tokens[len(self.tokens) - 1]
        return self.tokens[idx]

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        tok = self.current()
        return tok.value == value and tok.type != TK_STRING

    def at_op(self, ops: set[str]) -> bool:
        tok = self.current()
        return tok.type == TK_OP and tok.value in ops

    def at_type(self, type_: str) -> bool:
        return self.current().type == type_

    def expect(self, value: str) -> Token:
        if not self.at(value):
            raise self.error(
                "expected '" + value + "', found " + self.current().describe()
            )
        return self.advance()

    def expect_ident(self) -> Token:
        tok = self.current()
        if tok.type != TK_IDENT:
            raise self.error("expected identifier, found " + tok.describe())
        return self.advance()

    def error(self, msg: str) -> ParseError:
        tok = self.current()
        return ParseError(msg, tok.line, tok.col)

    def _pos(self) -> Pos:
        tok = self.current()
        return Pos(tok.line, tok.col)

    def _at_fn_decl(self) -> bool:
        """int IDENT '(' starts a function declaration."""
        nxt = self.peek(2)
        return self.at("int") and nxt.type == TK_OP and nxt.value == "("

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> Program:
        stmts: list[Stmt] = []
        while not self.at_type(TK_EOF):
            if self._at_fn_decl():
                stmts.append(self.parse_fn_decl())
            else:
                stmts.append(self.parse_stmt())
        return Program(stmts)

    def parse_fn_decl(self) -> FnDecl:
        """FnDecl = 'int' IDENT '(' Params ')' Block"""
        pos = self._pos()
        self.expect("int")
        name_tok = self.expect_ident()
        self.expect("(")
        params = self.parse_param_list()
        self.expect(")")
        body = self.parse_block()
        return FnDecl(pos, name_tok.value, params, body)

    def parse_param_list(self) -> list[str]:
        """Params = ( 'int' IDENT ( ',' 'int' IDENT )* )?"""
        params: list[str] = []
        if self.at(")"):
            return params
        params.append(self.parse_param())
        while self.at(","):
            self.advance()
            tok = self.peek(1)
            name = self.parse_param()
            if name in params:
                raise ParseError(
                    "duplicate parameter '" + name + "'", tok.line, tok.col
                )
            params.append(name)
        return params

    def parse_param(self) -> str:
        if not self.at("int"):
            raise self.error(
                "expected 'int' before parameter name, found "
                + self.current().describe()
            )
        self.advance()
        return self.expect_ident().value

    def parse_block(self) -> Block:
        pos = self._pos()
        self.expect("{")
        stmts: list[Stmt] = []
        while not self.at("}"):
            if self.at_type(TK_EOF):
                raise self.error("expected '}', found end of input")
            stmts.append(self.parse_stmt())
        self.expect("}")
        return Block(pos, stmts)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.at("int"):
            if self._at_fn_decl():
                raise self.error("function declarations are only allowed at top level")
            return self.parse_var_decl()
        if self.at("if"):
            return self.parse_if_stmt()
        if self.at("while"):
            return self.parse_while_stmt()
        if self.at("return"):
            return self.parse_return_stmt()
        if self.at("{"):
            return self.parse_block()
        return self.parse_expr_stmt()

    def parse_var_decl(self) -> VarDecl:
        """VarDecl = 'int' IDENT '=' Expr ';'"""
        pos = self._pos()
        self.expect("int")
        name_tok = self.expect_ident()
        self.expect("=")
        value = self.parse_expr()
        self.expect(";")
        return VarDecl(pos, name_tok.value, value)

    def parse_if_stmt(self) -> IfStmt:
        """If = 'if' '(' Expr ')' Block ( 'else' Block )?"""
        pos = self._pos()
        self.expect("if")
        self.expect("(")
        cond = self.parse_expr()
        self.expect(")")
        then_body = self.parse_block()
        else_body: Block | None = None
        if self.at("else"):
            self.advance()
            else_body = self.parse_block()
        return IfStmt(pos, cond, then_body, else_body)

    def parse_while_stmt(self) -> WhileStmt:
        """While = 'while' '(' Expr ')' Block"""
        pos = self._pos()
        self.expect("while")
        self.expect("(")
        cond = self.parse_expr()
        self.expect(")")
        body = self.parse_block()
        return WhileStmt(pos, cond, body)

    def parse_return_stmt(self) -> ReturnStmt:
        """Return = 'return' Expr? ';'"""
        pos = self._pos()
        self.expect("return")
        if self.at(";"):
            self.advance()
            return ReturnStmt(pos, None)
        value = self.parse_expr()
        self.expect(";")
        return ReturnStmt(pos, value)

    def parse_expr_stmt(self) -> ExprStmt:
        pos = self._pos()
        expr = self.parse_expr()
        self.expect(";")
        return ExprStmt(pos, expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = Equality ( '=' Assignment )?"""
        target = self.parse_equality()
        if self.at_op({"="}):
            eq_tok = self.advance()
            if not isinstance(target, Var):
                raise ParseError("invalid assignment target", eq_tok.line, eq_tok.col)
            value = self.parse_assignment()
            return Assign(target.pos, target.name, value)
        return target

    def parse_equality(self) -> Expr:
        """Equality = Relational ( ( '==' | '!=' ) Relational )*"""
        left = self.parse_relational()
        while self.at_op(EQUALITY_OPS):
            op = self.advance().value
            right = self.parse_relational()
            left = BinaryOp(left.pos, op, left, right)
        return left

    def parse_relational(self) -> Expr:
        """Relational = Sum ( ( '<' | '>' ) Sum )*"""
        left = self.parse_sum()
        while self.at_op(RELATIONAL_OPS):
            op = self.advance().value
            right = self.parse_sum()
            left = BinaryOp(left.pos, op, left, right)
        return left

    def parse_sum(self) -> Expr:
        """Sum = Product ( ( '+' | '-' ) Product )*"""
        left = self.parse_product()
        while self.at_op(ADDITIVE_OPS):
            op = self.advance().value
            right = self.parse_product()
            left = BinaryOp(left.pos, op, left, right)
        return left

    def parse_product(self) -> Expr:
        """Product = Unary ( ( '*' | '/' ) Unary )*"""
        left = self.parse_unary()
        while self.at_op(MULTIPLICATIVE_OPS):
            op = self.advance().value
            right = self.parse_unary()
            left = BinaryOp(left.pos, op, left, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = '-' Unary | Primary"""
        if self.at_op({"-"}):
            pos = self._pos()
            self.advance()
            tok = self.current()
            if tok.type == TK_INT and int(tok.value) == INT_LITERAL_MAX:
                # Only the most negative integer may spell out 2**63
                lit = IntLit(self._pos(), INT_LITERAL_MAX)
                self.advance()
                return UnaryOp(pos, "-", lit)
            operand = self.parse_unary()
            return UnaryOp(pos, "-", operand)
        return self.parse_primary()

    def parse_arg_list(self) -> list[Expr]:
        """ArgList = ( Expr ( ',' Expr )* )?"""
        args: list[Expr] = []
        if self.at(")"):
            return args
        args.append(self.parse_expr())
        while self.at(","):
            self.advance()
            args.append(self.parse_expr())
        return args

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        tok = self.current()
        pos = self._pos()

        if tok.type == TK_INT:
            if int(tok.value) >= INT_LITERAL_MAX:
                raise self.error("integer literal out of range")
            self.advance()
            return IntLit(pos, int(tok.value))
        if tok.type == TK_STRING:
            self.advance()
            return StringLit(pos, tok.value)
        if tok.type == "true" or tok.type == "false":
            self.advance()
            return BoolLit(pos, tok.type == "true")
        if tok.type == "null":
            self.advance()
            return NullLit(pos)

        if tok.type == TK_IDENT:
            self.advance()
            if self.at("("):
                self.advance()
                args = self.parse_arg_list()
                self.expect(")")
                return Call(pos, tok.value, args)
            return Var(pos, tok.value)

        if self.at("("):
            self.advance()
            expr = self.parse_expr()
            self.expect(")")
            return expr

        raise self.error("expected expression, found " + tok.describe())


def parse(source: str) -> Program:
    """Tokenize and parse TinyC source into a Program."""
    parser = Parser(tokenize(source))
    try:
        return parser.parse_program()
    except RecursionError:
        raise parser.error("expression nested too deeply") from None
