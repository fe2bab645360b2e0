"""Lox AST printer: renders the parse tree in parenthesized prefix form.

Covers every node type in `lox/ast.py`; a new node type needs a case here.
"""

from __future__ import annotations

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
from .values import format_number


def print_expr(expr: Expr) -> str:
    """Render one expression, e.g. `(* (- 123) (group 45.67))`."""
    if isinstance(expr, Literal):
        return _render_literal(expr.value)
    if isinstance(expr, Grouping):
        return _parenthesize("group", [print_expr(expr.expr)])
    if isinstance(expr, Unary):
        return _parenthesize(expr.op.lexeme, [print_expr(expr.operand)])
    if isinstance(expr, Binary) or isinstance(expr, Logical):
        return _parenthesize(
            expr.op.lexeme, [print_expr(expr.left), print_expr(expr.right)]
        )
    if isinstance(expr, Variable):
        return expr.name.lexeme
    if isinstance(expr, Assign):
        return _parenthesize("=", [expr.name.lexeme, print_expr(expr.value)])
    if isinstance(expr, Call):
        parts = [print_expr(expr.callee)]
        for arg in expr.args:
            parts.append(print_expr(arg))
        return _parenthesize("call", parts)
    if isinstance(expr, Get):
        return _parenthesize(".", [print_expr(expr.obj), expr.name.lexeme])
    if isinstance(expr, Set):
        target = _parenthesize(".", [print_expr(expr.obj), expr.name.lexeme])
        return _parenthesize("=", [target, print_expr(expr.value)])
    if isinstance(expr, This):
        return "this"
    if isinstance(expr, Super):
        return _parenthesize("super", [expr.method.lexeme])
    raise TypeError("unknown expression node: " + type(expr).__name__)


def print_stmt(stmt: Stmt) -> str:
    """Render one statement, e.g. `(var a (+ 1 2))`."""
    if isinstance(stmt, Expression):
        return _parenthesize(";", [print_expr(stmt.expr)])
    if isinstance(stmt, Print):
        return _parenthesize("print", [print_expr(stmt.expr)])
    if isinstance(stmt, Var):
        if stmt.initializer is None:
            return _parenthesize("var", [stmt.name.lexeme])
        return _parenthesize("var", [stmt.name.lexeme, print_expr(stmt.initializer)])
    if isinstance(stmt, Block):
        return _parenthesize("block", [print_stmt(s) for s in stmt.stmts])
    if isinstance(stmt, If):
        parts = [print_expr(stmt.cond), print_stmt(stmt.then_branch)]
        if stmt.else_branch is not None:
            parts.append(print_stmt(stmt.else_branch))
        return _parenthesize("if", parts)
    if isinstance(stmt, While):
        return _parenthesize("while", [print_expr(stmt.cond), print_stmt(stmt.body)])
    if isinstance(stmt, Function):
        return _render_function(stmt)
    if isinstance(stmt, Return):
        if stmt.value is None:
            return _parenthesize("return", [])
        return _parenthesize("return", [print_expr(stmt.value)])
    if isinstance(stmt, Class):
        parts = [stmt.name.lexeme]
        if stmt.superclass is not None:
            parts.append("<")
            parts.append(stmt.superclass.name.lexeme)
        for method in stmt.methods:
            parts.append(_render_function(method))
        return _parenthesize("class", parts)
    raise TypeError("unknown statement node: " + type(stmt).__name__)


def print_program(stmts: list[Stmt]) -> str:
    """One rendered statement per line."""
    out: list[str] = []
    for stmt in stmts:
        out.append(print_stmt(stmt) + "\n")
    return "".join(out)


def _render_function(fn: Function) -> str:
    params = "(" + " ".join(p.lexeme for p in fn.params) + ")"
    parts = [fn.name.lexeme, params]
    for s in fn.body:
        parts.append(print_stmt(s))
    return _parenthesize("fun", parts)


def _render_literal(value: float | str | bool | None) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return value


def _parenthesize(name: str, parts: list[str]) -> str:
    if len(parts) == 0:
        return "(" + name + ")"
    return "(" + name + " " + " ".join(parts) + ")"
