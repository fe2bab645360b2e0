"""Lox resolver: static scope analysis ahead of execution.

Walks the parsed program once, mirroring the environment frames the
interpreter will create, and records for each local variable reference how
many frames separate the use from its binding. References that are not found
in any local scope are left out of the table and treated as globals.
"""

from __future__ import annotations

import logging

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .tokens import TK_EOF, Token

logger = logging.getLogger(__name__)

# Enclosing function kinds
FN_NONE = "none"
FN_FUNCTION = "function"
FN_METHOD = "method"
FN_INITIALIZER = "initializer"

# Enclosing class kinds
CLASS_NONE = "none"
CLASS_CLASS = "class"
CLASS_SUBCLASS = "subclass"


# ============================================================
# RESOLVE ERROR
# ============================================================


class ResolveError(Exception):
    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + token.lexeme + "'"
        super().__init__("[line " + str(token.line) + "] Error" + where + ": " + msg)


# ============================================================
# RESOLVER
# ============================================================


class Resolver:
    def __init__(self) -> None:
        self.errors: list[ResolveError] = []
        self.locals: dict[int, int] = {}
        # name -> fully initialized
        self.scopes: list[dict[str, bool]] = []
        self.current_fn: str = FN_NONE
        self.current_class: str = CLASS_NONE

    def error(self, msg: str, tok: Token) -> None:
        self.errors.append(ResolveError(msg, tok))

    # ── Scope management ──────────────────────────────────────

    def enter_scope(self) -> None:
        self.scopes.append({})

    def exit_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if len(self.scopes) == 0:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error("Already a variable with this name in this scope.", name)
        scope[name.lexeme] = False

    def define(self, name: Token) -> None:
        if len(self.scopes) == 0:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, node_id: int, name: str) -> None:
        # Search scopes innermost-out; not found means global
        i = len(self.scopes) - 1
        while i >= 0:
            if name in self.scopes[i]:
                self.locals[node_id] = len(self.scopes) - 1 - i
                return
            i -= 1

    # ── Statements ───────────────────────────────────────────

    def resolve_stmts(self, stmts: list[Stmt]) -> None:
        for stmt in stmts:
            self.resolve_stmt(stmt)

    def resolve_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Block):
            self.enter_scope()
            self.resolve_stmts(stmt.stmts)
            self.exit_scope()
        elif isinstance(stmt, Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt, FN_FUNCTION)
        elif isinstance(stmt, Class):
            self.resolve_class(stmt)
        elif isinstance(stmt, Expression):
            self.resolve_expr(stmt.expr)
        elif isinstance(stmt, Print):
            self.resolve_expr(stmt.expr)
        elif isinstance(stmt, If):
            self.resolve_expr(stmt.cond)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, While):
            self.resolve_expr(stmt.cond)
            self.resolve_stmt(stmt.body)
        elif isinstance(stmt, Return):
            self.resolve_return(stmt)
        else:
            raise TypeError("unknown statement node: " + type(stmt).__name__)

    def resolve_function(self, fn: Function, kind: str) -> None:
        """Parameters and body share one scope, matching the call frame."""
        enclosing = self.current_fn
        self.current_fn = kind
        self.enter_scope()
        for param in fn.params:
            self.declare(param)
            self.define(param)
        self.resolve_stmts(fn.body)
        self.exit_scope()
        self.current_fn = enclosing

    def resolve_class(self, stmt: Class) -> None:
        enclosing = self.current_class
        self.current_class = CLASS_CLASS
        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error("A class can't inherit from itself.", stmt.superclass.name)
            self.current_class = CLASS_SUBCLASS
            self.resolve_expr(stmt.superclass)
            # Frame holding `super`, between the class scope and `this`
            self.enter_scope()
            self.scopes[-1]["super"] = True

        self.enter_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            kind = FN_INITIALIZER if method.name.lexeme == "init" else FN_METHOD
            self.resolve_function(method, kind)
        self.exit_scope()

        if stmt.superclass is not None:
            self.exit_scope()
        self.current_class = enclosing

    def resolve_return(self, stmt: Return) -> None:
        if self.current_fn == FN_NONE:
            self.error("Can't return from top-level code.", stmt.keyword)
        if stmt.value is not None:
            if self.current_fn == FN_INITIALIZER:
                self.error("Can't return a value from an initializer.", stmt.keyword)
            self.resolve_expr(stmt.value)

    # ── Expressions ──────────────────────────────────────────

    def resolve_expr(self, expr: Expr) -> None:
        if isinstance(expr, Variable):
            if (
                len(self.scopes) > 0
                and self.scopes[-1].get(expr.name.lexeme) is False
            ):
                self.error(
                    "Can't read local variable in its own initializer.", expr.name
                )
            self.resolve_local(expr.node_id, expr.name.lexeme)
        elif isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr.node_id, expr.name.lexeme)
        elif isinstance(expr, (Binary, Logical)):
            # operator chains nest left; the parser builds them iteratively
            try:
                self.resolve_expr(expr.left)
                self.resolve_expr(expr.right)
            except RecursionError:
                self.error("Too much nesting.", expr.op)
        elif isinstance(expr, Unary):
            self.resolve_expr(expr.operand)
        elif isinstance(expr, Grouping):
            self.resolve_expr(expr.expr)
        elif isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for arg in expr.args:
                self.resolve_expr(arg)
        elif isinstance(expr, Get):
            self.resolve_expr(expr.obj)
        elif isinstance(expr, Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.obj)
        elif isinstance(expr, This):
            if self.current_class == CLASS_NONE:
                self.error("Can't use 'this' outside of a class.", expr.keyword)
                return
            self.resolve_local(expr.node_id, "this")
        elif isinstance(expr, Super):
            if self.current_class == CLASS_NONE:
                self.error("Can't use 'super' outside of a class.", expr.keyword)
            elif self.current_class != CLASS_SUBCLASS:
                self.error(
                    "Can't use 'super' in a class with no superclass.", expr.keyword
                )
            self.resolve_local(expr.node_id, "super")
        elif isinstance(expr, Literal):
            pass
        else:
            raise TypeError("unknown expression node: " + type(expr).__name__)


def resolve(stmts: list[Stmt]) -> tuple[dict[int, int], list[ResolveError]]:
    """Resolve a parsed program. Returns (distance table, errors)."""
    resolver = Resolver()
    resolver.resolve_stmts(stmts)
    logger.debug(
        "resolved %d local references with %d errors",
        len(resolver.locals),
        len(resolver.errors),
    )
    return resolver.locals, resolver.errors
