"""Tests for the Lox parser and AST printer."""

import pytest

from lox.ast import Assign, Block, Call, Expression, Function, Set, Var, Variable, While
from lox.parse import parse
from lox.printer import print_expr, print_stmt
from lox.tokens import tokenize


def _parse(source: str):
    tokens, scan_errors = tokenize(source)
    assert scan_errors == []
    program, errors = parse(tokens)
    assert errors == [], [str(e) for e in errors]
    return program


def _errors(source: str) -> list[str]:
    tokens, _ = tokenize(source)
    _, errors = parse(tokens)
    return [str(e) for e in errors]


def _expr(source: str) -> str:
    program = _parse(source + ";")
    assert len(program) == 1
    stmt = program[0]
    assert isinstance(stmt, Expression)
    return print_expr(stmt.expr)


@pytest.mark.parametrize(
    "source,expected",
    [
        ("-123 * (45.67)", "(* (- 123) (group 45.67))"),
        ("1 + 2 * 3", "(+ 1 (* 2 3))"),
        ("1 - 2 - 3", "(- (- 1 2) 3)"),
        ("a or b and c", "(or a (and b c))"),
        ("1 < 2 == 3 >= 4", "(== (< 1 2) (>= 3 4))"),
        ("!!true", "(! (! true))"),
        ("a = b = c", "(= a (= b c))"),
        ("a.b.c = 1", "(= (. (. a b) c) 1)"),
        ("f(1)(2)", "(call (call f 1) 2)"),
        ("obj.method(x, y)", "(call (. obj method) x y)"),
        ('"str" + nil', "(+ str nil)"),
    ],
)
def test_expression_precedence(source: str, expected: str):
    assert _expr(source) == expected


def test_assignment_targets():
    program = _parse("a = 1; a.b = 2;")
    first = program[0]
    second = program[1]
    assert isinstance(first, Expression) and isinstance(first.expr, Assign)
    assert isinstance(second, Expression) and isinstance(second.expr, Set)


@pytest.mark.parametrize("source", ["1 = 2;", "a + b = c;", "(a) = 1;", "f() = 1;"])
def test_invalid_assignment_target(source: str):
    errors = _errors(source)
    assert len(errors) == 1
    assert "Invalid assignment target." in errors[0]


def test_for_desugars_to_while_in_block():
    program = _parse("for (var i = 0; i < 3; i = i + 1) print i;")
    assert len(program) == 1
    outer = program[0]
    assert isinstance(outer, Block)
    assert isinstance(outer.stmts[0], Var)
    loop = outer.stmts[1]
    assert isinstance(loop, While)
    assert isinstance(loop.body, Block)
    assert print_stmt(loop.body.stmts[1]) == "(; (= i (+ i 1)))"


def test_for_without_clauses_loops_on_true():
    program = _parse("for (;;) print 1;")
    loop = program[0]
    assert isinstance(loop, While)
    assert print_stmt(loop) == "(while true (print 1))"


@pytest.mark.parametrize(
    "source,expected",
    [
        ("print 1;", "(print 1)"),
        ("var a;", "(var a)"),
        ("var a = 1 + 2;", "(var a (+ 1 2))"),
        ("{ var a; print a; }", "(block (var a) (print a))"),
        ("if (a) print 1; else print 2;", "(if a (print 1) (print 2))"),
        ("fun add(a, b) { return a + b; }", "(fun add (a b) (return (+ a b)))"),
        ("fun f() { return; }", "(fun f () (return))"),
        (
            "class B < A { init(x) { this.x = x; } get() { return super.get(); } }",
            "(class B < A (fun init (x) (; (= (. this x) x))) "
            "(fun get () (return (call (super get)))))",
        ),
    ],
)
def test_statement_printing(source: str, expected: str):
    program = _parse(source)
    assert print_stmt(program[0]) == expected


def test_class_and_function_declarations():
    program = _parse("fun f(a, b, c) {} class C { m() {} }")
    fn = program[0]
    assert isinstance(fn, Function)
    assert [p.lexeme for p in fn.params] == ["a", "b", "c"]


def test_dangling_else_binds_to_nearest_if():
    program = _parse("if (a) if (b) print 1; else print 2;")
    assert print_stmt(program[0]) == "(if a (if b (print 1) (print 2)))"


def test_error_at_end():
    errors = _errors("print 1")
    assert errors == ["[line 1] Error at end: Expected ';' after value."]


def test_error_at_token():
    errors = _errors("var 1 = 2;")
    assert errors == ["[line 1] Error at '1': Expected variable name."]


def test_panic_mode_reports_multiple_errors():
    source = "var = 1;\nprint 2;\nfun (a) {}\nprint (;\nprint 3;"
    errors = _errors(source)
    assert len(errors) == 3
    assert errors[0].startswith("[line 1]")
    assert errors[1].startswith("[line 3]")
    assert errors[2].startswith("[line 4]")


def test_recovery_keeps_valid_statements():
    tokens, _ = tokenize("print 1;\nvar;\nprint 2;")
    program, errors = parse(tokens)
    assert len(errors) == 1
    assert [print_stmt(s) for s in program] == ["(print 1)", "(print 2)"]


def test_error_inside_block_recovers_within_block():
    errors = _errors("{ var x = ; print x; }\nprint 1;")
    assert len(errors) == 1
    assert "Expected expression." in errors[0]


def test_missing_closing_brace():
    errors = _errors("{ print 1;")
    assert errors == ["[line 1] Error at end: Expected '}' after block."]


def test_argument_limit():
    args = ", ".join(["1"] * 256)
    errors = _errors("f(" + args + ");")
    assert len(errors) == 1
    assert "Can't have more than 255 arguments." in errors[0]


def test_parameter_limit():
    params = ", ".join("p" + str(i) for i in range(256))
    errors = _errors("fun f(" + params + ") {}")
    assert len(errors) == 1
    assert "Can't have more than 255 parameters." in errors[0]


def test_255_arguments_is_fine():
    args = ", ".join(["1"] * 255)
    program = _parse("f(" + args + ");")
    stmt = program[0]
    assert isinstance(stmt, Expression)
    assert isinstance(stmt.expr, Call)
    assert len(stmt.expr.args) == 255


def test_each_variable_occurrence_has_distinct_id():
    program = _parse("a; a;")
    first = program[0]
    second = program[1]
    assert isinstance(first, Expression) and isinstance(first.expr, Variable)
    assert isinstance(second, Expression) and isinstance(second.expr, Variable)
    assert first.expr.node_id != second.expr.node_id
