"""Lox runtime: tree-walking interpreter and pipeline driver.

The interpreter executes a resolved program against a chain of environment
frames. `Session` runs the full pipeline (scan, parse, resolve, execute) and
keeps its global frame across runs; `run` is a one-shot session.
"""

from __future__ import annotations

from dataclasses import dataclass
import io
import logging
import math
import sys
import threading
import time
from typing import Callable, TextIO, TypeVar

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
from .environment import Environment, LoxRuntimeError
from .parse import parse
from .resolver import resolve
from .tokens import (
    TK_BANG,
    TK_BANG_EQUAL,
    TK_EQUAL_EQUAL,
    TK_GREATER,
    TK_GREATER_EQUAL,
    TK_LESS,
    TK_LESS_EQUAL,
    TK_MINUS,
    TK_OR,
    TK_PLUS,
    TK_SLASH,
    TK_STAR,
    Token,
    tokenize,
)
from .values import (
    NIL,
    BoundMethod,
    LoxCallable,
    LoxClass,
    LoxFunction,
    LoxInstance,
    NativeFunction,
    Value,
    VNumber,
    VString,
    is_truthy,
    stringify,
    values_equal,
    vbool,
)

__all__ = [
    "EX_DATAERR",
    "EX_SOFTWARE",
    "Interpreter",
    "LoxRuntimeError",
    "RunResult",
    "Session",
    "run",
]

logger = logging.getLogger(__name__)

# sysexits.h codes reported by the driver
EX_DATAERR = 65
EX_SOFTWARE = 70

# Host limits for one pipeline run; each Lox call costs several Python frames
RECURSION_LIMIT = 100_000
STACK_SIZE = 512 * 1024 * 1024

T = TypeVar("T")


# ============================================================
# Control flow signals (internal)
# ============================================================


class _Signal(Exception):
    pass


@dataclass
class _Return(_Signal):
    value: Value


# ============================================================
# Native functions
# ============================================================


def _native_clock(args: list[Value]) -> Value:
    return VNumber(time.time())


NATIVES: dict[str, tuple[int, Callable[[list[Value]], Value]]] = {
    "clock": (0, _native_clock),
}


# ============================================================
# Arithmetic helpers
# ============================================================


def _divide(a: float, b: float) -> float:
    """IEEE-754 division: x/0 is a signed infinity, 0/0 is NaN."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        sign = math.copysign(1.0, a) * math.copysign(1.0, b)
        return math.copysign(math.inf, sign)
    return a / b


def _check_number(op: Token, v: Value) -> float:
    if not isinstance(v, VNumber):
        raise LoxRuntimeError("Operand must be a number.", op)
    return v.value


def _check_numbers(op: Token, a: Value, b: Value) -> tuple[float, float]:
    if not isinstance(a, VNumber) or not isinstance(b, VNumber):
        raise LoxRuntimeError("Operands must be numbers.", op)
    return a.value, b.value


# ============================================================
# Interpreter
# ============================================================


class Interpreter:
    def __init__(self, out: TextIO | None = None) -> None:
        self.globals = Environment()
        # node id -> scope distance, filled from the resolver
        self.locals: dict[int, int] = {}
        # print writes here as each statement runs
        self.out = out if out is not None else sys.stdout
        for name, (arity, fn) in NATIVES.items():
            self.globals.define(name, NativeFunction(name, arity, fn))

    def interpret(self, stmts: list[Stmt]) -> None:
        """Execute top-level statements; a LoxRuntimeError aborts the rest."""
        for st in stmts:
            self._exec_stmt(st, self.globals)

    # ---- Statements --------------------------------------------------------

    def _exec_block(self, stmts: list[Stmt], env: Environment) -> None:
        for st in stmts:
            self._exec_stmt(st, env)

    def _exec_stmt(self, st: Stmt, env: Environment) -> None:
        if isinstance(st, Expression):
            self._eval_expr(st.expr, env)
            return
        if isinstance(st, Print):
            val = self._eval_expr(st.expr, env)
            self.out.write(stringify(val) + "\n")
            return
        if isinstance(st, Var):
            val: Value = NIL
            if st.initializer is not None:
                val = self._eval_expr(st.initializer, env)
            env.define(st.name.lexeme, val)
            return
        if isinstance(st, Block):
            self._exec_block(st.stmts, Environment(env))
            return
        if isinstance(st, If):
            if is_truthy(self._eval_expr(st.cond, env)):
                self._exec_stmt(st.then_branch, env)
            elif st.else_branch is not None:
                self._exec_stmt(st.else_branch, env)
            return
        if isinstance(st, While):
            while is_truthy(self._eval_expr(st.cond, env)):
                self._exec_stmt(st.body, env)
            return
        if isinstance(st, Function):
            env.define(st.name.lexeme, LoxFunction(st, env))
            return
        if isinstance(st, Return):
            val = NIL
            if st.value is not None:
                val = self._eval_expr(st.value, env)
            raise _Return(val)
        if isinstance(st, Class):
            self._exec_class(st, env)
            return
        raise TypeError("unknown statement node: " + type(st).__name__)

    def _exec_class(self, st: Class, env: Environment) -> None:
        superclass: LoxClass | None = None
        if st.superclass is not None:
            sc = self._eval_expr(st.superclass, env)
            if not isinstance(sc, LoxClass):
                raise LoxRuntimeError("Superclass must be a class.", st.superclass.name)
            superclass = sc

        env.define(st.name.lexeme, NIL)

        method_env = env
        if superclass is not None:
            method_env = Environment(env)
            method_env.define("super", superclass)

        methods: dict[str, LoxFunction] = {}
        for m in st.methods:
            methods[m.name.lexeme] = LoxFunction(
                m, method_env, is_initializer=m.name.lexeme == "init"
            )

        env.define(st.name.lexeme, LoxClass(st.name.lexeme, superclass, methods))

    # ---- Calls -------------------------------------------------------------

    def _call(self, callee: Value, args: list[Value], paren: Token) -> Value:
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError("Can only call functions and classes.", paren)
        if len(args) != callee.arity():
            raise LoxRuntimeError(
                "Expected "
                + str(callee.arity())
                + " arguments but got "
                + str(len(args))
                + ".",
                paren,
            )
        try:
            if isinstance(callee, LoxFunction):
                return self._call_function(callee, args, callee.closure, None)
            if isinstance(callee, BoundMethod):
                return self._call_method(callee.method, callee.receiver, args)
            if isinstance(callee, LoxClass):
                instance = LoxInstance(callee)
                init = callee.find_method("init")
                if init is not None:
                    self._call_method(init, instance, args)
                return instance
            if isinstance(callee, NativeFunction):
                return callee.fn(args)
        except RecursionError:
            raise LoxRuntimeError("Stack overflow.", paren) from None
        raise TypeError("unknown callable: " + type(callee).__name__)

    def _call_method(
        self, method: LoxFunction, receiver: LoxInstance, args: list[Value]
    ) -> Value:
        # Frame binding `this`, between the closure and the call frame
        env_this = Environment(method.closure)
        env_this.define("this", receiver)
        return self._call_function(method, args, env_this, receiver)

    def _call_function(
        self,
        fn: LoxFunction,
        args: list[Value],
        closure: Environment,
        receiver: LoxInstance | None,
    ) -> Value:
        env = Environment(closure)
        for param, arg in zip(fn.declaration.params, args):
            env.define(param.lexeme, arg)
        try:
            self._exec_block(fn.declaration.body, env)
        except _Return as r:
            if fn.is_initializer and receiver is not None:
                return receiver
            return r.value
        if fn.is_initializer and receiver is not None:
            return receiver
        return NIL

    # ---- Variables ---------------------------------------------------------

    def _look_up(self, name: Token, node_id: int, env: Environment) -> Value:
        distance = self.locals.get(node_id)
        if distance is None:
            return self.globals.get(name)
        return env.get_at(distance, name.lexeme)

    # ---- Expressions -------------------------------------------------------

    def _eval_expr(self, expr: Expr, env: Environment) -> Value:
        if isinstance(expr, Literal):
            return _literal_value(expr.value)
        if isinstance(expr, Grouping):
            return self._eval_expr(expr.expr, env)
        if isinstance(expr, Variable):
            return self._look_up(expr.name, expr.node_id, env)
        if isinstance(expr, Assign):
            val = self._eval_expr(expr.value, env)
            distance = self.locals.get(expr.node_id)
            if distance is None:
                self.globals.assign(expr.name, val)
            else:
                env.assign_at(distance, expr.name, val)
            return val
        if isinstance(expr, Unary):
            return self._eval_unary(expr, env)
        if isinstance(expr, Binary):
            return self._eval_binary(expr, env)
        if isinstance(expr, Logical):
            try:
                left = self._eval_expr(expr.left, env)
                if expr.op.type == TK_OR:
                    if is_truthy(left):
                        return left
                elif not is_truthy(left):
                    return left
                return self._eval_expr(expr.right, env)
            except RecursionError:
                raise LoxRuntimeError("Stack overflow.", expr.op) from None
        if isinstance(expr, Call):
            callee = self._eval_expr(expr.callee, env)
            args = [self._eval_expr(a, env) for a in expr.args]
            return self._call(callee, args, expr.paren)
        if isinstance(expr, Get):
            obj = self._eval_expr(expr.obj, env)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError("Only instances have properties.", expr.name)
            return obj.get(expr.name)
        if isinstance(expr, Set):
            obj = self._eval_expr(expr.obj, env)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError("Only instances have fields.", expr.name)
            val = self._eval_expr(expr.value, env)
            obj.set(expr.name, val)
            return val
        if isinstance(expr, This):
            return self._look_up(expr.keyword, expr.node_id, env)
        if isinstance(expr, Super):
            return self._eval_super(expr, env)
        raise TypeError("unknown expression node: " + type(expr).__name__)

    def _eval_unary(self, expr: Unary, env: Environment) -> Value:
        operand = self._eval_expr(expr.operand, env)
        if expr.op.type == TK_MINUS:
            return VNumber(-_check_number(expr.op, operand))
        if expr.op.type == TK_BANG:
            return vbool(not is_truthy(operand))
        raise TypeError("unknown unary operator: " + expr.op.lexeme)

    def _eval_binary(self, expr: Binary, env: Environment) -> Value:
        op = expr.op
        try:
            left = self._eval_expr(expr.left, env)
            right = self._eval_expr(expr.right, env)
        except RecursionError:
            # long operator chains nest as deeply as calls do
            raise LoxRuntimeError("Stack overflow.", op) from None
        kind = op.type
        if kind == TK_PLUS:
            if isinstance(left, VNumber) and isinstance(right, VNumber):
                return VNumber(left.value + right.value)
            if isinstance(left, VString) and isinstance(right, VString):
                return VString(left.value + right.value)
            raise LoxRuntimeError("Operands must be two numbers or two strings.", op)
        if kind == TK_EQUAL_EQUAL:
            return vbool(values_equal(left, right))
        if kind == TK_BANG_EQUAL:
            return vbool(not values_equal(left, right))
        a, b = _check_numbers(op, left, right)
        if kind == TK_MINUS:
            return VNumber(a - b)
        if kind == TK_STAR:
            return VNumber(a * b)
        if kind == TK_SLASH:
            return VNumber(_divide(a, b))
        if kind == TK_GREATER:
            return vbool(a > b)
        if kind == TK_GREATER_EQUAL:
            return vbool(a >= b)
        if kind == TK_LESS:
            return vbool(a < b)
        if kind == TK_LESS_EQUAL:
            return vbool(a <= b)
        raise TypeError("unknown binary operator: " + op.lexeme)

    def _eval_super(self, expr: Super, env: Environment) -> Value:
        distance = self.locals[expr.node_id]
        superclass = env.get_at(distance, "super")
        assert isinstance(superclass, LoxClass)
        # `this` is always bound in the frame just inside `super`
        receiver = env.get_at(distance - 1, "this")
        assert isinstance(receiver, LoxInstance)
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(
                "Undefined property '" + expr.method.lexeme + "'.", expr.method
            )
        return BoundMethod(receiver, method)


def _literal_value(v: float | str | bool | None) -> Value:
    if v is None:
        return NIL
    if isinstance(v, bool):
        return vbool(v)
    if isinstance(v, float):
        return VNumber(v)
    return VString(v)


# ============================================================
# Pipeline driver
# ============================================================


@dataclass
class RunResult:
    had_scan_error: bool
    had_parse_error: bool
    had_resolve_error: bool
    had_runtime_error: bool
    stdout: str
    stderr: str

    @property
    def had_syntax_error(self) -> bool:
        return self.had_scan_error or self.had_parse_error

    @property
    def exit_code(self) -> int:
        if self.had_syntax_error or self.had_resolve_error:
            return EX_DATAERR
        if self.had_runtime_error:
            return EX_SOFTWARE
        return 0


def _run_deep(fn: Callable[[], T]) -> T:
    """Call fn on a worker thread with a large stack and recursion limit.

    The default limit caps Lox recursion at a couple of hundred calls.
    Exceptions raised by fn are re-raised in the calling thread.
    """
    result: list[T] = []
    failure: list[BaseException] = []

    def target() -> None:
        old_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(RECURSION_LIMIT)
        try:
            result.append(fn())
        except BaseException as e:
            failure.append(e)
        finally:
            sys.setrecursionlimit(old_limit)

    old_size = threading.stack_size(STACK_SIZE)
    try:
        worker = threading.Thread(target=target, name="lox-run", daemon=True)
        worker.start()
    finally:
        threading.stack_size(old_size)
    worker.join()
    if failure:
        raise failure[0]
    return result[0]


class Session:
    """Runs source through the pipeline against a persistent global frame.

    With no stream, each run's print output is captured and returned in
    `RunResult.stdout`. With a stream, output is written to it as the
    program runs and `RunResult.stdout` is empty.
    """

    def __init__(self, out: TextIO | None = None) -> None:
        self.stream = out
        self.interpreter = Interpreter(out if out is not None else io.StringIO())

    def run(self, source: str) -> RunResult:
        if self.stream is None:
            self.interpreter.out = io.StringIO()
        return _run_deep(lambda: self._run(source))

    def _run(self, source: str) -> RunResult:
        tokens, scan_errors = tokenize(source)
        program, parse_errors = parse(tokens)
        stderr: list[str] = []
        for err in scan_errors:
            stderr.append(str(err) + "\n")
        for perr in parse_errors:
            stderr.append(str(perr) + "\n")
        if len(scan_errors) > 0 or len(parse_errors) > 0:
            return RunResult(
                len(scan_errors) > 0,
                len(parse_errors) > 0,
                False,
                False,
                "",
                "".join(stderr),
            )

        distances, resolve_errors = resolve(program)
        if len(resolve_errors) > 0:
            for rerr in resolve_errors:
                stderr.append(str(rerr) + "\n")
            return RunResult(False, False, True, False, "", "".join(stderr))

        self.interpreter.locals.update(distances)
        had_runtime_error = False
        try:
            self.interpreter.interpret(program)
        except LoxRuntimeError as e:
            logger.debug("runtime error at line %d: %s", e.line, e.msg)
            stderr.append(str(e) + "\n")
            had_runtime_error = True
        stdout = ""
        if self.stream is None:
            assert isinstance(self.interpreter.out, io.StringIO)
            stdout = self.interpreter.out.getvalue()
        return RunResult(
            False,
            False,
            False,
            had_runtime_error,
            stdout,
            "".join(stderr),
        )


def run(source: str, out: TextIO | None = None) -> RunResult:
    """Run Lox source in a fresh global environment."""
    return Session(out).run(source)
