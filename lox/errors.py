from typing import Any

from lox.lexer import Token, TokenKind


class LoxError(Exception):
    """Base class for diagnostics that point at a source token."""
    def __init__(self, token: Token, message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    @property
    def line(self) -> int:
        return self.token.line

    def report(self) -> str:
        return f"[line {self.line}] Error: {self.message}"


class ParseError(LoxError):
    """The token stream does not match the grammar at `token`."""
    def report(self) -> str:
        if self.token.kind is TokenKind.EOF:
            where = ' at end'
        else:
            where = f" at '{self.token.lexeme}'"
        return f"[line {self.line}] Error{where}: {self.message}"


class LoxRuntimeError(LoxError):
    """An operation was applied to values it does not accept."""
    def report(self) -> str:
        return f"[line {self.line}] RuntimeError: {self.message}"


class UndefinedVariable(LoxRuntimeError):
    def __init__(self, token: Token):
        super().__init__(token, f"Undefined variable '{token.lexeme}'.")
        self.name = token.lexeme


class ReturnSignal(Exception):
    """Internal exception to handle return statements in functions."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
