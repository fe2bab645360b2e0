"""Lox environment chain: runtime variable frames."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .tokens import Token

if TYPE_CHECKING:
    from .values import Value


class LoxRuntimeError(Exception):
    """Fatal evaluation error located at the offending token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        super().__init__(msg + "\n[line " + str(token.line) + "]")


class Environment:
    """One frame of variable bindings plus a fixed link to its enclosing frame.

    Frames are shared by reference: every closure created while a frame is
    active holds the same object, so a mutation through one is seen by all.
    """

    __slots__ = ("values", "enclosing")

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, Value] = {}
        self.enclosing: Environment | None = enclosing

    def define(self, name: str, value: Value) -> None:
        self.values[name] = value

    def get(self, name: Token) -> Value:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError("Undefined variable '" + name.lexeme + "'.", name)

    def assign(self, name: Token, value: Value) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError("Undefined variable '" + name.lexeme + "'.", name)

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            assert env.enclosing is not None, "resolved distance past global frame"
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Value:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Value) -> None:
        self.ancestor(distance).values[name.lexeme] = value
