"""Recursive-descent parser for the Lox language.

The parser pulls tokens from a `TokenStream` and builds a list of
statement nodes. Each binary precedence level is one method that parses
the next-tighter level and then loops while the current token is one of
its operators, folding to the left. Grammar, loosest binding first:

    program     -> declaration* EOF
    declaration -> funDecl | varDecl | statement
    statement   -> exprStmt | printStmt | ifStmt | whileStmt | forStmt
                 | block | returnStmt
    expression  -> assignment
    assignment  -> IDENTIFIER "=" assignment | logic_or
    logic_or    -> logic_and ( "or" logic_and )*
    logic_and   -> equality ( "and" equality )*
    equality    -> comparison ( ( "!=" | "==" ) comparison )*
    comparison  -> term ( ( ">" | ">=" | "<" | "<=" ) term )*
    term        -> factor ( ( "-" | "+" ) factor )*
    factor      -> unary ( ( "/" | "*" ) unary )*
    unary       -> ( "!" | "-" ) unary | call
    call        -> primary ( "(" arguments? ")" )*
    primary     -> NUMBER | STRING | "true" | "false" | "nil"
                 | "(" expression ")" | IDENTIFIER

Syntax errors are reported as soon as they are found. The statement that
failed is dropped and the parser skips ahead to the next statement
boundary (synchronization), so one mistake produces one diagnostic and
the rest of the program is still checked.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Union

from .ast import (
    Expr, Stmt, Literal, Grouping, UnaryOp, BinaryOp, Logical, Variable,
    Assign, Call, ExprStmt, PrintStmt, VarDecl, Block, IfStmt, WhileStmt,
    FuncDecl, ReturnStmt,
)
from .errors import LoxError, ParseError
from .lexer import Lexer, Token, TokenKind, TokenStream


MAX_ARGUMENTS = 255

# Tokens that begin a statement; synchronization stops in front of them.
STATEMENT_KEYWORDS = {
    TokenKind.CLASS, TokenKind.FUN, TokenKind.VAR, TokenKind.FOR,
    TokenKind.IF, TokenKind.WHILE, TokenKind.PRINT, TokenKind.RETURN,
}


def report_to_stderr(error: LoxError):
    print(error.report(), file=sys.stderr)


@dataclass
class ParseResult:
    statements: List[Stmt]
    errors: List[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Parser:
    def __init__(self, tokens: Union[TokenStream, Iterable[Token]],
                 on_error: Optional[Callable[[LoxError], None]] = None):
        self.stream = tokens if isinstance(tokens, TokenStream) else TokenStream(tokens)
        self.on_error = on_error if on_error is not None else report_to_stderr
        self.errors: List[ParseError] = []
        # number of function bodies enclosing the current position
        self.function_depth = 0

    # Cursor helpers

    def peek(self) -> Token:
        return self.stream.peek()

    def previous(self) -> Optional[Token]:
        return self.stream.previous()

    def advance(self) -> Token:
        return self.stream.advance()

    def match(self, *kinds: TokenKind) -> bool:
        return self.stream.check(*kinds)

    def consume(self, kind: TokenKind, message: str) -> Token:
        if self.match(kind):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> ParseError:
        """Report a syntax error now and hand it back for raising.

        Callers that can keep going in place (an invalid assignment
        target, too many arguments) report without raising.
        """
        error = ParseError(token, message)
        self.errors.append(error)
        self.on_error(error)
        return error

    def synchronize(self):
        self.advance()
        while not self.stream.is_at_end():
            if self.previous().kind is TokenKind.SEMICOLON:
                return
            if self.peek().kind in STATEMENT_KEYWORDS:
                return
            self.advance()

    # Declarations and statements

    def parse(self) -> ParseResult:
        statements: List[Stmt] = []
        while not self.stream.is_at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        return ParseResult(statements, self.errors)

    def parse_declaration(self) -> Optional[Stmt]:
        try:
            if self.match(TokenKind.FUN):
                self.advance()
                return self.parse_function()
            if self.match(TokenKind.VAR):
                self.advance()
                return self.parse_var_decl()
            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None

    def parse_function(self) -> FuncDecl:
        name = self.consume(TokenKind.IDENTIFIER, "Expect function name.")
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after function name.")
        params: List[Token] = []
        if not self.match(TokenKind.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} parameters.")
                params.append(self.consume(TokenKind.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenKind.COMMA):
                    break
                self.advance()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenKind.LEFT_BRACE, "Expect '{' before function body.")
        self.function_depth += 1
        try:
            body = self.parse_block()
        finally:
            self.function_depth -= 1
        return FuncDecl(name, params, body)

    def parse_var_decl(self) -> VarDecl:
        name = self.consume(TokenKind.IDENTIFIER, "Expect variable name.")
        initializer: Optional[Expr] = None
        if self.match(TokenKind.EQUAL):
            self.advance()
            initializer = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after variable declaration.")
        return VarDecl(name, initializer)

    def parse_statement(self) -> Stmt:
        kind = self.peek().kind
        if kind is TokenKind.PRINT:
            self.advance()
            return self.parse_print_stmt()
        if kind is TokenKind.IF:
            self.advance()
            return self.parse_if_stmt()
        if kind is TokenKind.WHILE:
            self.advance()
            return self.parse_while_stmt()
        if kind is TokenKind.FOR:
            self.advance()
            return self.parse_for_stmt()
        if kind is TokenKind.RETURN:
            return self.parse_return_stmt()
        if kind is TokenKind.LEFT_BRACE:
            self.advance()
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_print_stmt(self) -> PrintStmt:
        value = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after value.")
        return PrintStmt(value)

    def parse_expr_stmt(self) -> ExprStmt:
        expr = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after expression.")
        return ExprStmt(expr)

    def parse_block(self) -> List[Stmt]:
        # the opening brace has already been consumed
        statements: List[Stmt] = []
        while not self.match(TokenKind.RIGHT_BRACE) and not self.stream.is_at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenKind.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def parse_if_stmt(self) -> IfStmt:
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after 'if'.")
        condition = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch = None
        if self.match(TokenKind.ELSE):
            self.advance()
            else_branch = self.parse_statement()
        return IfStmt(condition, then_branch, else_branch)

    def parse_while_stmt(self) -> WhileStmt:
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after 'while'.")
        condition = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_statement()
        return WhileStmt(condition, body)

    def parse_for_stmt(self) -> Stmt:
        # for (init; cond; incr) body  becomes
        # { init; while (cond) { body; incr; } }
        self.consume(TokenKind.LEFT_PAREN, "Expect '(' after 'for'.")
        initializer: Optional[Stmt]
        if self.match(TokenKind.SEMICOLON):
            self.advance()
            initializer = None
        elif self.match(TokenKind.VAR):
            self.advance()
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Optional[Expr] = None
        if not self.match(TokenKind.SEMICOLON):
            condition = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after loop condition.")

        increment: Optional[Expr] = None
        if not self.match(TokenKind.RIGHT_PAREN):
            increment = self.parse_expression()
        self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.parse_statement()
        if increment is not None:
            body = Block([body, ExprStmt(increment)])
        if condition is None:
            condition = Literal(True)
        loop: Stmt = WhileStmt(condition, body)
        if initializer is not None:
            loop = Block([initializer, loop])
        return loop

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.advance()
        if self.function_depth == 0:
            self.error(keyword, "Can't return from top-level code.")
        value: Optional[Expr] = None
        if not self.match(TokenKind.SEMICOLON):
            value = self.parse_expression()
        self.consume(TokenKind.SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    # Expressions

    def parse_expression(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        expr = self.parse_logic_or()
        if self.match(TokenKind.EQUAL):
            equals = self.advance()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            self.error(equals, "Invalid assignment target.")
        return expr

    def parse_logic_or(self) -> Expr:
        expr = self.parse_logic_and()
        while self.match(TokenKind.OR):
            operator = self.advance()
            right = self.parse_logic_and()
            expr = Logical(expr, operator, right)
        return expr

    def parse_logic_and(self) -> Expr:
        expr = self.parse_equality()
        while self.match(TokenKind.AND):
            operator = self.advance()
            right = self.parse_equality()
            expr = Logical(expr, operator, right)
        return expr

    def parse_equality(self) -> Expr:
        expr = self.parse_comparison()
        while self.match(TokenKind.BANG_EQUAL, TokenKind.EQUAL_EQUAL):
            operator = self.advance()
            right = self.parse_comparison()
            expr = BinaryOp(expr, operator, right)
        return expr

    def parse_comparison(self) -> Expr:
        expr = self.parse_term()
        while self.match(TokenKind.GREATER, TokenKind.GREATER_EQUAL,
                         TokenKind.LESS, TokenKind.LESS_EQUAL):
            operator = self.advance()
            right = self.parse_term()
            expr = BinaryOp(expr, operator, right)
        return expr

    def parse_term(self) -> Expr:
        expr = self.parse_factor()
        while self.match(TokenKind.MINUS, TokenKind.PLUS):
            operator = self.advance()
            right = self.parse_factor()
            expr = BinaryOp(expr, operator, right)
        return expr

    def parse_factor(self) -> Expr:
        expr = self.parse_unary()
        while self.match(TokenKind.SLASH, TokenKind.STAR):
            operator = self.advance()
            right = self.parse_unary()
            expr = BinaryOp(expr, operator, right)
        return expr

    def parse_unary(self) -> Expr:
        if self.match(TokenKind.BANG, TokenKind.MINUS):
            operator = self.advance()
            operand = self.parse_unary()
            return UnaryOp(operator, operand)
        return self.parse_call()

    def parse_call(self) -> Expr:
        expr = self.parse_primary()
        while self.match(TokenKind.LEFT_PAREN):
            self.advance()
            expr = self.finish_call(expr)
        return expr

    def finish_call(self, callee: Expr) -> Call:
        args: List[Expr] = []
        if not self.match(TokenKind.RIGHT_PAREN):
            while True:
                if len(args) >= MAX_ARGUMENTS:
                    self.error(self.peek(), f"Can't have more than {MAX_ARGUMENTS} arguments.")
                args.append(self.parse_expression())
                if not self.match(TokenKind.COMMA):
                    break
                self.advance()
        paren = self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, args)

    def parse_primary(self) -> Expr:
        token = self.peek()
        kind = token.kind
        if kind is TokenKind.FALSE:
            self.advance()
            return Literal(False)
        if kind is TokenKind.TRUE:
            self.advance()
            return Literal(True)
        if kind is TokenKind.NIL:
            self.advance()
            return Literal(None)
        if kind is TokenKind.NUMBER:
            self.advance()
            return Literal(token.literal)
        if kind is TokenKind.STRING:
            if not token.terminated:
                raise self.error(token, "Unterminated string.")
            self.advance()
            return Literal(token.literal)
        if kind is TokenKind.IDENTIFIER:
            self.advance()
            return Variable(token)
        if kind is TokenKind.LEFT_PAREN:
            self.advance()
            expr = self.parse_expression()
            self.consume(TokenKind.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)
        if kind is TokenKind.ERROR:
            raise self.error(token, "Unexpected character.")
        raise self.error(token, "Expect expression.")


def parse_program(source: str, on_error: Optional[Callable[[LoxError], None]] = None) -> ParseResult:
    """Parse Lox source code into a list of statements.

    Syntax errors are passed to `on_error` (default: printed to stderr)
    as they are found and are also collected on the returned result.
    """
    return Parser(Lexer(source), on_error).parse()
