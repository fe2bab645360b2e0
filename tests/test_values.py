"""Tests for the Lox value model and environment chain."""

import math

import pytest

from lox.environment import Environment, LoxRuntimeError
from lox.tokens import TK_IDENT, Token
from lox.values import (
    FALSE,
    NIL,
    TRUE,
    LoxClass,
    LoxInstance,
    VBool,
    VNumber,
    VString,
    format_number,
    is_truthy,
    values_equal,
)


def _name(lexeme: str, line: int = 1) -> Token:
    return Token(TK_IDENT, lexeme, None, line)


@pytest.mark.parametrize(
    "x,expected",
    [
        (3.0, "3"),
        (-0.0, "-0"),
        (2.5, "2.5"),
        (0.1 + 0.2, "0.30000000000000004"),
        (1e21, "1000000000000000000000"),
        (123456789012345678.0, "123456789012345680"),
        (1e-7, "0.0000001"),
        (100.0, "100"),
        (math.inf, "Infinity"),
        (-math.inf, "-Infinity"),
        (math.nan, "NaN"),
    ],
)
def test_format_number(x: float, expected: str):
    assert format_number(x) == expected


def test_truthiness():
    assert not is_truthy(NIL)
    assert not is_truthy(FALSE)
    assert is_truthy(TRUE)
    assert is_truthy(VNumber(0.0))
    assert is_truthy(VString(""))


def test_equality_by_value_for_primitives():
    assert values_equal(NIL, NIL)
    assert values_equal(VNumber(1.0), VNumber(1.0))
    assert values_equal(VString("a"), VString("a"))
    assert values_equal(VBool(True), TRUE)
    assert not values_equal(VNumber(1.0), VString("1"))
    assert not values_equal(NIL, FALSE)
    assert not values_equal(VNumber(0.0), FALSE)


def test_equality_by_identity_for_objects():
    cls = LoxClass("A", None, {})
    a = LoxInstance(cls)
    b = LoxInstance(cls)
    assert values_equal(a, a)
    assert not values_equal(a, b)
    assert values_equal(cls, cls)


def test_object_rendering():
    cls = LoxClass("Point", None, {})
    assert cls.to_string() == "Point"
    assert LoxInstance(cls).to_string() == "Point instance"


def test_find_method_walks_superclasses():
    base = LoxClass("Base", None, {})
    mid = LoxClass("Mid", base, {})
    leaf = LoxClass("Leaf", mid, {})
    assert leaf.find_method("missing") is None
    assert leaf.arity() == 0


def test_instance_fields_and_undefined_property():
    inst = LoxInstance(LoxClass("A", None, {}))
    inst.set(_name("x"), VNumber(1.0))
    got = inst.get(_name("x"))
    assert isinstance(got, VNumber) and got.value == 1.0
    with pytest.raises(LoxRuntimeError) as exc:
        inst.get(_name("y", line=7))
    assert str(exc.value) == "Undefined property 'y'.\n[line 7]"


def test_environment_chain_lookup_and_shadowing():
    outer = Environment()
    outer.define("a", VString("outer"))
    inner = Environment(outer)
    assert values_equal(inner.get(_name("a")), VString("outer"))
    inner.define("a", VString("inner"))
    assert values_equal(inner.get(_name("a")), VString("inner"))
    assert values_equal(outer.get(_name("a")), VString("outer"))


def test_environment_assign_walks_to_binding_frame():
    outer = Environment()
    outer.define("a", VNumber(1.0))
    inner = Environment(outer)
    inner.assign(_name("a"), VNumber(2.0))
    assert "a" not in inner.values
    assert values_equal(outer.get(_name("a")), VNumber(2.0))


def test_environment_undefined_variable():
    env = Environment()
    with pytest.raises(LoxRuntimeError) as exc:
        env.get(_name("nope", line=3))
    assert exc.value.msg == "Undefined variable 'nope'."
    assert exc.value.line == 3
    with pytest.raises(LoxRuntimeError):
        env.assign(_name("nope"), NIL)


def test_get_at_and_assign_at():
    root = Environment()
    root.define("x", VNumber(1.0))
    child = Environment(Environment(root))
    assert child.ancestor(2) is root
    assert values_equal(child.get_at(2, "x"), VNumber(1.0))
    child.assign_at(2, _name("x"), VNumber(5.0))
    assert values_equal(root.values["x"], VNumber(5.0))


def test_shared_frame_is_seen_by_all_holders():
    frame = Environment()
    frame.define("count", VNumber(0.0))
    holder_a = Environment(frame)
    holder_b = Environment(frame)
    holder_a.assign_at(1, _name("count"), VNumber(1.0))
    assert values_equal(holder_b.get_at(1, "count"), VNumber(1.0))
