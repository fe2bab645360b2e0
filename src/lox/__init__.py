"""Lox tree-walking interpreter: public API."""

from __future__ import annotations

from .environment import LoxRuntimeError as LoxRuntimeError
from .parse import ParseError as ParseError, parse as parse
from .printer import print_expr as print_expr, print_stmt as print_stmt
from .resolver import ResolveError as ResolveError, resolve as resolve
from .runtime import RunResult as RunResult, Session as Session, run as run
from .tokens import ScanError as ScanError, Token as Token, tokenize as tokenize
