"""Lox value model: tagged runtime values and their canonical rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
import math
from typing import Callable

from .ast import Function
from .environment import Environment, LoxRuntimeError
from .tokens import Token


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value."""

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass(eq=False)
class VNil(Value):
    def to_string(self) -> str:
        return "nil"


@dataclass(eq=False)
class VBool(Value):
    value: bool

    def to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass(eq=False)
class VNumber(Value):
    value: float

    def to_string(self) -> str:
        return format_number(self.value)


@dataclass(eq=False)
class VString(Value):
    value: str

    def to_string(self) -> str:
        return self.value


NIL = VNil()
TRUE = VBool(True)
FALSE = VBool(False)


def vbool(b: bool) -> VBool:
    return TRUE if b else FALSE


def format_number(x: float) -> str:
    """Shortest round-tripping digits in positional form, no trailing '.0'."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "Infinity" if x > 0 else "-Infinity"
    text = format(Decimal(repr(x)), "f")
    if text.endswith(".0"):
        return text[:-2]
    return text


# ── Callables ──────────────────────────────────────────────


class LoxCallable(Value):
    """Anything a call expression may invoke."""

    def arity(self) -> int:
        raise NotImplementedError


@dataclass(eq=False)
class LoxFunction(LoxCallable):
    """User function closing over the frame active at its declaration."""

    declaration: Function
    closure: Environment
    is_initializer: bool = False

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: LoxInstance) -> BoundMethod:
        return BoundMethod(instance, self)

    def to_string(self) -> str:
        return "<fn " + self.declaration.name.lexeme + ">"


@dataclass(eq=False)
class NativeFunction(LoxCallable):
    """Host-provided function."""

    name: str
    n_params: int
    fn: Callable[[list[Value]], Value]

    def arity(self) -> int:
        return self.n_params

    def to_string(self) -> str:
        return "<native fn>"


@dataclass(eq=False)
class BoundMethod(LoxCallable):
    """A method paired with the instance `this` refers to."""

    receiver: LoxInstance
    method: LoxFunction

    def arity(self) -> int:
        return self.method.arity()

    def to_string(self) -> str:
        return self.method.to_string()


@dataclass(eq=False)
class LoxClass(LoxCallable):
    name: str
    superclass: LoxClass | None
    methods: dict[str, LoxFunction]

    def find_method(self, name: str) -> LoxFunction | None:
        """Own methods first, then up the superclass chain."""
        cls: LoxClass | None = self
        while cls is not None:
            if name in cls.methods:
                return cls.methods[name]
            cls = cls.superclass
        return None

    def arity(self) -> int:
        init = self.find_method("init")
        if init is None:
            return 0
        return init.arity()

    def to_string(self) -> str:
        return self.name


@dataclass(eq=False)
class LoxInstance(Value):
    klass: LoxClass
    fields: dict[str, Value] = field(default_factory=dict)

    def get(self, name: Token) -> Value:
        """Field lookup, falling back to a method bound to this instance."""
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError("Undefined property '" + name.lexeme + "'.", name)

    def set(self, name: Token, value: Value) -> None:
        self.fields[name.lexeme] = value

    def to_string(self) -> str:
        return self.klass.name + " instance"


# ============================================================
# Semantics shared by the interpreter
# ============================================================


def is_truthy(v: Value) -> bool:
    """Only nil and false are falsy."""
    if isinstance(v, VNil):
        return False
    if isinstance(v, VBool):
        return v.value
    return True


def values_equal(a: Value, b: Value) -> bool:
    """Primitives compare by value, everything else by identity."""
    if isinstance(a, VNil):
        return isinstance(b, VNil)
    if isinstance(a, VBool):
        return isinstance(b, VBool) and a.value == b.value
    if isinstance(a, VNumber):
        return isinstance(b, VNumber) and a.value == b.value
    if isinstance(a, VString):
        return isinstance(b, VString) and a.value == b.value
    return a is b


def stringify(v: Value) -> str:
    return v.to_string()
