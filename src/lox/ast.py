"""Lox AST: parse-time node definitions."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

from .tokens import Token

_node_ids = itertools.count(1)


def next_node_id() -> int:
    """Process-unique id for a resolvable expression node."""
    return next(_node_ids)


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass(frozen=True)
class Expr:
    """Base for all expression nodes."""


@dataclass(frozen=True)
class Literal(Expr):
    """nil, true, false, number or string literal."""

    value: float | str | bool | None


@dataclass(frozen=True)
class Grouping(Expr):
    """( expr )."""

    expr: Expr


@dataclass(frozen=True)
class Unary(Expr):
    """-expr or !expr."""

    op: Token
    operand: Expr


@dataclass(frozen=True)
class Binary(Expr):
    """left op right, for arithmetic, comparison and equality."""

    left: Expr
    op: Token
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    """left and right / left or right (short-circuiting)."""

    left: Expr
    op: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    """Read of a named variable."""

    name: Token
    node_id: int = field(default_factory=next_node_id)


@dataclass(frozen=True)
class Assign(Expr):
    """name = value."""

    name: Token
    value: Expr
    node_id: int = field(default_factory=next_node_id)


@dataclass(frozen=True)
class Call(Expr):
    """callee(args...). paren is the closing ')' used for error location."""

    callee: Expr
    paren: Token
    args: list[Expr]


@dataclass(frozen=True)
class Get(Expr):
    """obj.name."""

    obj: Expr
    name: Token


@dataclass(frozen=True)
class Set(Expr):
    """obj.name = value."""

    obj: Expr
    name: Token
    value: Expr


@dataclass(frozen=True)
class This(Expr):
    """this."""

    keyword: Token
    node_id: int = field(default_factory=next_node_id)


@dataclass(frozen=True)
class Super(Expr):
    """super.method."""

    keyword: Token
    method: Token
    node_id: int = field(default_factory=next_node_id)


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(frozen=True)
class Stmt:
    """Base for all statements."""


@dataclass(frozen=True)
class Expression(Stmt):
    """Bare expression as statement."""

    expr: Expr


@dataclass(frozen=True)
class Print(Stmt):
    """print expr;"""

    expr: Expr


@dataclass(frozen=True)
class Var(Stmt):
    """var name = initializer;"""

    name: Token
    initializer: Expr | None


@dataclass(frozen=True)
class Block(Stmt):
    """{ stmts }"""

    stmts: list[Stmt]


@dataclass(frozen=True)
class If(Stmt):
    """if (cond) then_branch else else_branch"""

    cond: Expr
    then_branch: Stmt
    else_branch: Stmt | None


@dataclass(frozen=True)
class While(Stmt):
    """while (cond) body. Also the target of `for` desugaring."""

    cond: Expr
    body: Stmt


@dataclass(frozen=True)
class Function(Stmt):
    """fun name(params) { body }, also used for class methods."""

    name: Token
    params: list[Token]
    body: list[Stmt]


@dataclass(frozen=True)
class Return(Stmt):
    """return value?;"""

    keyword: Token
    value: Expr | None


@dataclass(frozen=True)
class Class(Stmt):
    """class Name < Superclass { methods }"""

    name: Token
    superclass: Variable | None
    methods: list[Function]
