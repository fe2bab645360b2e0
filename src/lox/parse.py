"""Lox parser: recursive descent, one method per grammar production."""

from __future__ import annotations

import logging

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
from .tokens import (
    TK_AND,
    TK_BANG,
    TK_BANG_EQUAL,
    TK_CLASS,
    TK_COMMA,
    TK_DOT,
    TK_ELSE,
    TK_EOF,
    TK_EQUAL,
    TK_EQUAL_EQUAL,
    TK_FALSE,
    TK_FOR,
    TK_FUN,
    TK_GREATER,
    TK_GREATER_EQUAL,
    TK_IDENT,
    TK_IF,
    TK_LEFT_BRACE,
    TK_LEFT_PAREN,
    TK_LESS,
    TK_LESS_EQUAL,
    TK_MINUS,
    TK_NIL,
    TK_NUMBER,
    TK_OR,
    TK_PLUS,
    TK_PRINT,
    TK_RETURN,
    TK_RIGHT_BRACE,
    TK_RIGHT_PAREN,
    TK_SEMICOLON,
    TK_SLASH,
    TK_STAR,
    TK_STRING,
    TK_SUPER,
    TK_THIS,
    TK_TRUE,
    TK_VAR,
    TK_WHILE,
    Token,
)

logger = logging.getLogger(__name__)

MAX_ARGS = 255

# Tokens that begin a statement or declaration; panic mode stops before them
STMT_STARTS: set[str] = {
    TK_CLASS,
    TK_FUN,
    TK_VAR,
    TK_FOR,
    TK_IF,
    TK_WHILE,
    TK_PRINT,
    TK_RETURN,
}

EQUALITY_OPS: tuple[str, ...] = (TK_BANG_EQUAL, TK_EQUAL_EQUAL)
COMPARE_OPS: tuple[str, ...] = (TK_GREATER, TK_GREATER_EQUAL, TK_LESS, TK_LESS_EQUAL)


class ParseError(Exception):
    """Parse error at a specific token."""

    def __init__(self, msg: str, token: Token):
        self.msg: str = msg
        self.token: Token = token
        self.line: int = token.line
        if token.type == TK_EOF:
            where = " at end"
        else:
            where = " at '" + token.lexeme + "'"
        super().__init__("[line " + str(token.line) + "] Error" + where + ": " + msg)


class Parser:
    """Recursive descent parser for Lox with panic-mode error recovery."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0
        self.errors: list[ParseError] = []

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current().type == TK_EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.type != TK_EOF:
            self.pos += 1
        return tok

    def at(self, type_: str) -> bool:
        return self.current().type == type_

    def match(self, *types: str) -> bool:
        if self.current().type in types:
            self.advance()
            return True
        return False

    def expect(self, type_: str, msg: str) -> Token:
        if self.at(type_):
            return self.advance()
        raise self.error(msg)

    def error(self, msg: str, tok: Token | None = None) -> ParseError:
        return ParseError(msg, tok if tok is not None else self.current())

    def report(self, msg: str, tok: Token) -> None:
        """Record an error without unwinding; the parse continues in place."""
        self.errors.append(ParseError(msg, tok))

    def synchronize(self) -> None:
        """Discard tokens up to the next statement boundary."""
        self.advance()
        while not self.at_end():
            if self.previous().type == TK_SEMICOLON:
                return
            if self.current().type in STMT_STARTS:
                return
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> list[Stmt]:
        stmts: list[Stmt] = []
        while not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        return stmts

    def parse_declaration(self) -> Stmt | None:
        """Declaration, or None after recovering from a parse error."""
        try:
            if self.match(TK_CLASS):
                return self.parse_class_decl()
            if self.match(TK_FUN):
                return self.parse_function("function")
            if self.match(TK_VAR):
                return self.parse_var_decl()
            return self.parse_stmt()
        except ParseError as e:
            self.errors.append(e)
            self.synchronize()
            return None
        except RecursionError:
            self.errors.append(self.error("Too much nesting."))
            self.synchronize()
            return None

    def parse_class_decl(self) -> Class:
        name = self.expect(TK_IDENT, "Expected class name.")
        superclass: Variable | None = None
        if self.match(TK_LESS):
            super_name = self.expect(TK_IDENT, "Expected superclass name.")
            superclass = Variable(super_name)
        self.expect(TK_LEFT_BRACE, "Expected '{' before class body.")
        methods: list[Function] = []
        while not self.at(TK_RIGHT_BRACE) and not self.at_end():
            methods.append(self.parse_function("method"))
        self.expect(TK_RIGHT_BRACE, "Expected '}' after class body.")
        return Class(name, superclass, methods)

    def parse_function(self, kind: str) -> Function:
        """Named function or method; kind only feeds error messages."""
        name = self.expect(TK_IDENT, "Expected " + kind + " name.")
        self.expect(TK_LEFT_PAREN, "Expected '(' after " + kind + " name.")
        params: list[Token] = []
        if not self.at(TK_RIGHT_PAREN):
            params.append(self.expect(TK_IDENT, "Expected parameter name."))
            while self.match(TK_COMMA):
                if len(params) >= MAX_ARGS:
                    self.report(
                        "Can't have more than " + str(MAX_ARGS) + " parameters.",
                        self.current(),
                    )
                params.append(self.expect(TK_IDENT, "Expected parameter name."))
        self.expect(TK_RIGHT_PAREN, "Expected ')' after parameters.")
        self.expect(TK_LEFT_BRACE, "Expected '{' before " + kind + " body.")
        body = self.parse_block()
        return Function(name, params, body)

    def parse_var_decl(self) -> Var:
        name = self.expect(TK_IDENT, "Expected variable name.")
        initializer: Expr | None = None
        if self.match(TK_EQUAL):
            initializer = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expected ';' after variable declaration.")
        return Var(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_stmt(self) -> Stmt:
        if self.match(TK_FOR):
            return self.parse_for_stmt()
        if self.match(TK_IF):
            return self.parse_if_stmt()
        if self.match(TK_PRINT):
            return self.parse_print_stmt()
        if self.match(TK_RETURN):
            return self.parse_return_stmt()
        if self.match(TK_WHILE):
            return self.parse_while_stmt()
        if self.match(TK_LEFT_BRACE):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_block(self) -> list[Stmt]:
        """Statements up to the closing '}'; the opening '{' is consumed."""
        stmts: list[Stmt] = []
        while not self.at(TK_RIGHT_BRACE) and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)
        self.expect(TK_RIGHT_BRACE, "Expected '}' after block.")
        return stmts

    def parse_for_stmt(self) -> Stmt:
        """Desugar `for (init; cond; incr) body` into a block with a while loop."""
        self.expect(TK_LEFT_PAREN, "Expected '(' after 'for'.")
        initializer: Stmt | None
        if self.match(TK_SEMICOLON):
            initializer = None
        elif self.match(TK_VAR):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        cond: Expr | None = None
        if not self.at(TK_SEMICOLON):
            cond = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expected ';' after loop condition.")

        increment: Expr | None = None
        if not self.at(TK_RIGHT_PAREN):
            increment = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expected ')' after for clauses.")

        body = self.parse_stmt()
        if increment is not None:
            body = Block([body, Expression(increment)])
        if cond is None:
            cond = Literal(True)
        loop: Stmt = While(cond, body)
        if initializer is not None:
            loop = Block([initializer, loop])
        return loop

    def parse_if_stmt(self) -> If:
        self.expect(TK_LEFT_PAREN, "Expected '(' after 'if'.")
        cond = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expected ')' after if condition.")
        then_branch = self.parse_stmt()
        else_branch: Stmt | None = None
        if self.match(TK_ELSE):
            else_branch = self.parse_stmt()
        return If(cond, then_branch, else_branch)

    def parse_print_stmt(self) -> Print:
        value = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expected ';' after value.")
        return Print(value)

    def parse_return_stmt(self) -> Return:
        keyword = self.previous()
        value: Expr | None = None
        if not self.at(TK_SEMICOLON):
            value = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expected ';' after return value.")
        return Return(keyword, value)

    def parse_while_stmt(self) -> While:
        self.expect(TK_LEFT_PAREN, "Expected '(' after 'while'.")
        cond = self.parse_expr()
        self.expect(TK_RIGHT_PAREN, "Expected ')' after condition.")
        body = self.parse_stmt()
        return While(cond, body)

    def parse_expr_stmt(self) -> Expression:
        expr = self.parse_expr()
        self.expect(TK_SEMICOLON, "Expected ';' after expression.")
        return Expression(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = ( Call '.' )? IDENT '=' Assignment | Or"""
        expr = self.parse_or()
        if self.at(TK_EQUAL):
            equals = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.obj, expr.name, value)
            self.report("Invalid assignment target.", equals)
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.at(TK_OR):
            op = self.advance()
            right = self.parse_and()
            left = Logical(left, op, right)
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.at(TK_AND):
            op = self.advance()
            right = self.parse_equality()
            left = Logical(left, op, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '!=' | '==' ) Comparison )*"""
        left = self.parse_comparison()
        while self.current().type in EQUALITY_OPS:
            op = self.advance()
            right = self.parse_comparison()
            left = Binary(left, op, right)
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        left = self.parse_term()
        while self.current().type in COMPARE_OPS:
            op = self.advance()
            right = self.parse_term()
            left = Binary(left, op, right)
        return left

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '-' | '+' ) Factor )*"""
        left = self.parse_factor()
        while self.at(TK_MINUS) or self.at(TK_PLUS):
            op = self.advance()
            right = self.parse_factor()
            left = Binary(left, op, right)
        return left

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '/' | '*' ) Unary )*"""
        left = self.parse_unary()
        while self.at(TK_SLASH) or self.at(TK_STAR):
            op = self.advance()
            right = self.parse_unary()
            left = Binary(left, op, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.at(TK_BANG) or self.at(TK_MINUS):
            op = self.advance()
            operand = self.parse_unary()
            return Unary(op, operand)
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match(TK_LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TK_DOT):
                name = self.expect(TK_IDENT, "Expected property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        args: list[Expr] = []
        if not self.at(TK_RIGHT_PAREN):
            args.append(self.parse_expr())
            while self.match(TK_COMMA):
                if len(args) >= MAX_ARGS:
                    self.report(
                        "Can't have more than " + str(MAX_ARGS) + " arguments.",
                        self.current(),
                    )
                args.append(self.parse_expr())
        paren = self.expect(TK_RIGHT_PAREN, "Expected ')' after arguments.")
        return Call(callee, paren, args)

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        tok = self.current()

        # Literals
        if tok.type == TK_FALSE:
            self.advance()
            return Literal(False)
        if tok.type == TK_TRUE:
            self.advance()
            return Literal(True)
        if tok.type == TK_NIL:
            self.advance()
            return Literal(None)
        if tok.type == TK_NUMBER or tok.type == TK_STRING:
            self.advance()
            return Literal(tok.literal)

        if tok.type == TK_SUPER:
            self.advance()
            self.expect(TK_DOT, "Expected '.' after 'super'.")
            method = self.expect(TK_IDENT, "Expected superclass method name.")
            return Super(tok, method)
        if tok.type == TK_THIS:
            self.advance()
            return This(tok)
        if tok.type == TK_IDENT:
            self.advance()
            return Variable(tok)

        if tok.type == TK_LEFT_PAREN:
            self.advance()
            expr = self.parse_expr()
            self.expect(TK_RIGHT_PAREN, "Expected ')' after expression.")
            return Grouping(expr)

        raise self.error("Expected expression.")


def parse(tokens: list[Token]) -> tuple[list[Stmt], list[ParseError]]:
    """Parse a token list into statements. Returns (program, errors)."""
    parser = Parser(tokens)
    program = parser.parse_program()
    logger.debug(
        "parsed %d top-level statements with %d errors",
        len(program),
        len(parser.errors),
    )
    return program, parser.errors
