"""Tests for the Lox resolver."""

import pytest

from lox.ast import Block, Expression, Function, Print, Var, Variable
from lox.parse import parse
from lox.resolver import resolve
from lox.tokens import tokenize


def _resolve(source: str):
    tokens, _ = tokenize(source)
    program, parse_errors = parse(tokens)
    assert parse_errors == [], [str(e) for e in parse_errors]
    distances, errors = resolve(program)
    return program, distances, [str(e) for e in errors]


def _ok(source: str):
    program, distances, errors = _resolve(source)
    assert errors == [], errors
    return program, distances


def test_globals_are_not_recorded():
    program, distances = _ok("var a = 1; print a;")
    stmt = program[1]
    assert isinstance(stmt, Print) and isinstance(stmt.expr, Variable)
    assert stmt.expr.node_id not in distances


def test_block_local_distance_zero():
    program, distances = _ok("{ var a = 1; print a; }")
    block = program[0]
    assert isinstance(block, Block)
    stmt = block.stmts[1]
    assert isinstance(stmt, Print) and isinstance(stmt.expr, Variable)
    assert distances[stmt.expr.node_id] == 0


def test_nested_block_distance():
    program, distances = _ok("{ var a = 1; { { print a; } } }")
    outer = program[0]
    assert isinstance(outer, Block)
    mid = outer.stmts[1]
    assert isinstance(mid, Block)
    inner = mid.stmts[0]
    assert isinstance(inner, Block)
    stmt = inner.stmts[0]
    assert isinstance(stmt, Print) and isinstance(stmt.expr, Variable)
    assert distances[stmt.expr.node_id] == 2


def test_same_name_resolves_differently_by_position():
    program, distances = _ok("{ var a = 1; { print a; var a = 2; print a; } }")
    outer = program[0]
    assert isinstance(outer, Block)
    inner = outer.stmts[1]
    assert isinstance(inner, Block)
    first = inner.stmts[0]
    second = inner.stmts[2]
    assert isinstance(first, Print) and isinstance(first.expr, Variable)
    assert isinstance(second, Print) and isinstance(second.expr, Variable)
    assert distances[first.expr.node_id] == 1
    assert distances[second.expr.node_id] == 0


def test_parameters_share_scope_with_body():
    program, distances = _ok("fun f(a) { var b = a; return b; }")
    fn = program[0]
    assert isinstance(fn, Function)
    decl = fn.body[0]
    assert isinstance(decl, Var) and isinstance(decl.initializer, Variable)
    assert distances[decl.initializer.node_id] == 0


def test_closure_reference_distance():
    program, distances = _ok("fun outer() { var x = 1; fun inner() { x; } }")
    outer = program[0]
    assert isinstance(outer, Function)
    inner = outer.body[1]
    assert isinstance(inner, Function)
    stmt = inner.body[0]
    assert isinstance(stmt, Expression) and isinstance(stmt.expr, Variable)
    assert distances[stmt.expr.node_id] == 1


@pytest.mark.parametrize(
    "source,message",
    [
        ("{ var a = a; }", "Can't read local variable in its own initializer."),
        ("{ var a = 1; var a = 2; }", "Already a variable with this name in this scope."),
        ("fun f(a, a) {}", "Already a variable with this name in this scope."),
        ("return 1;", "Can't return from top-level code."),
        ("print this;", "Can't use 'this' outside of a class."),
        ("fun f() { return this; }", "Can't use 'this' outside of a class."),
        ("print super.x;", "Can't use 'super' outside of a class."),
        ("class A { m() { super.m(); } }", "Can't use 'super' in a class with no superclass."),
        ("class A < A {}", "A class can't inherit from itself."),
        ("class A { init() { return 1; } }", "Can't return a value from an initializer."),
    ],
)
def test_static_errors(source: str, message: str):
    _, _, errors = _resolve(source)
    assert len(errors) >= 1
    assert any(message in e for e in errors), errors


@pytest.mark.parametrize(
    "source",
    [
        "var a = 1; var a = 2;",
        "var a = a;",
        "class A { init() { return; } }",
        "class A { m() { fun inner() { return this; } } }",
        "class A {} class B < A { m() { return super.m; } }",
        "fun f() { { var a; } { var a; } }",
    ],
)
def test_accepted_programs(source: str):
    _, _, errors = _resolve(source)
    assert errors == []


def test_errors_collected_across_tree():
    _, _, errors = _resolve("return 1;\n{ var a = a; }\nprint this;")
    assert len(errors) == 3
    assert errors[0] == "[line 1] Error at 'return': Can't return from top-level code."
    assert errors[1].startswith("[line 2] Error at 'a'")
    assert errors[2].startswith("[line 3] Error at 'this'")
