"""Lox scanner: lexes source into a flat token list."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


# Token kinds: literals
TK_IDENT = "IDENTIFIER"
TK_STRING = "STRING"
TK_NUMBER = "NUMBER"
TK_EOF = "EOF"

# Token kinds: punctuation and operators
TK_LEFT_PAREN = "LEFT_PAREN"
TK_RIGHT_PAREN = "RIGHT_PAREN"
TK_LEFT_BRACE = "LEFT_BRACE"
TK_RIGHT_BRACE = "RIGHT_BRACE"
TK_COMMA = "COMMA"
TK_DOT = "DOT"
TK_MINUS = "MINUS"
TK_PLUS = "PLUS"
TK_SEMICOLON = "SEMICOLON"
TK_SLASH = "SLASH"
TK_STAR = "STAR"
TK_BANG = "BANG"
TK_BANG_EQUAL = "BANG_EQUAL"
TK_EQUAL = "EQUAL"
TK_EQUAL_EQUAL = "EQUAL_EQUAL"
TK_GREATER = "GREATER"
TK_GREATER_EQUAL = "GREATER_EQUAL"
TK_LESS = "LESS"
TK_LESS_EQUAL = "LESS_EQUAL"

# Token kinds: keywords
TK_AND = "AND"
TK_CLASS = "CLASS"
TK_ELSE = "ELSE"
TK_FALSE = "FALSE"
TK_FUN = "FUN"
TK_FOR = "FOR"
TK_IF = "IF"
TK_NIL = "NIL"
TK_OR = "OR"
TK_PRINT = "PRINT"
TK_RETURN = "RETURN"
TK_SUPER = "SUPER"
TK_THIS = "THIS"
TK_TRUE = "TRUE"
TK_VAR = "VAR"
TK_WHILE = "WHILE"

KEYWORDS: dict[str, str] = {
    "and": TK_AND,
    "class": TK_CLASS,
    "else": TK_ELSE,
    "false": TK_FALSE,
    "for": TK_FOR,
    "fun": TK_FUN,
    "if": TK_IF,
    "nil": TK_NIL,
    "or": TK_OR,
    "print": TK_PRINT,
    "return": TK_RETURN,
    "super": TK_SUPER,
    "this": TK_THIS,
    "true": TK_TRUE,
    "var": TK_VAR,
    "while": TK_WHILE,
}

# Two-character operators, checked before their one-character prefixes
MULTI_OPS: dict[str, str] = {
    "!=": TK_BANG_EQUAL,
    "==": TK_EQUAL_EQUAL,
    "<=": TK_LESS_EQUAL,
    ">=": TK_GREATER_EQUAL,
}

SINGLE_OPS: dict[str, str] = {
    "(": TK_LEFT_PAREN,
    ")": TK_RIGHT_PAREN,
    "{": TK_LEFT_BRACE,
    "}": TK_RIGHT_BRACE,
    ",": TK_COMMA,
    ".": TK_DOT,
    "-": TK_MINUS,
    "+": TK_PLUS,
    ";": TK_SEMICOLON,
    "/": TK_SLASH,
    "*": TK_STAR,
    "!": TK_BANG,
    "=": TK_EQUAL,
    "<": TK_LESS,
    ">": TK_GREATER,
}


class ScanError(Exception):
    """Lexical error: unexpected character or unterminated string."""

    def __init__(self, msg: str, line: int):
        self.msg: str = msg
        self.line: int = line
        super().__init__("[line " + str(line) + "] Error: " + msg)


class Token:
    """A token with kind, exact source lexeme, optional literal, and line."""

    __slots__ = ("type", "lexeme", "literal", "line")

    def __init__(
        self, type_: str, lexeme: str, literal: float | str | None, line: int
    ):
        self.type: str = type_
        self.lexeme: str = lexeme
        self.literal: float | str | None = literal
        self.line: int = line

    def describe(self) -> str:
        """Render as `KIND lexeme literal` for token dumps."""
        if self.literal is None:
            shown = "null"
        elif isinstance(self.literal, float):
            shown = repr(self.literal)
        else:
            shown = self.literal
        return self.type + " " + self.lexeme + " " + shown

    def __repr__(self) -> str:
        return (
            "Token("
            + self.type
            + ", "
            + repr(self.lexeme)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def tokenize(source: str) -> tuple[list[Token], list[ScanError]]:
    """Tokenize Lox source into a flat list ending with TK_EOF.

    Lexical errors are collected rather than raised; scanning always reaches
    the end of the input.
    """
    tokens: list[Token] = []
    errors: list[ScanError] = []
    pos = 0
    line = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r":
            pos += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line

        # Number: digits, optionally '.' followed by more digits
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TK_NUMBER, raw, float(raw), start_line))
            continue

        # String literal: "..." with no escapes, may span lines
        if c == '"':
            pos += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                errors.append(ScanError("Unterminated string.", line))
                continue
            pos += 1  # skip closing "
            raw = source[start_pos:pos]
            tokens.append(Token(TK_STRING, raw, raw[1:-1], start_line))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start_pos:pos]
            tokens.append(Token(KEYWORDS.get(word, TK_IDENT), word, None, start_line))
            continue

        # Two-character operators
        pair = source[pos : pos + 2]
        if pair in MULTI_OPS:
            tokens.append(Token(MULTI_OPS[pair], pair, None, start_line))
            pos += 2
            continue

        # Single-character operators and punctuation
        if c in SINGLE_OPS:
            tokens.append(Token(SINGLE_OPS[c], c, None, start_line))
            pos += 1
            continue

        errors.append(ScanError("Unexpected character.", line))
        pos += 1

    tokens.append(Token(TK_EOF, "", None, line))
    logger.debug("scanned %d tokens with %d errors", len(tokens), len(errors))
    return tokens, errors
