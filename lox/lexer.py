"""Tokenizer for the Lox language.

Tokenization is delegated to a Lark grammar driven by Lark's basic
(longest-match) lexer. The grammar's only job is to name every terminal;
no parse tree is ever built from it. Raw Lark tokens are converted into
our own `Token` records which carry the kind, the source text, the
position where the token begins and the decoded literal value.

The lexer is total: characters that do not start any valid token come
out as `ERROR` tokens and unterminated strings come out as `STRING`
tokens flagged as not terminated. Reporting those is the parser's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional

from lark import Lark


LOX_TOKENS = r"""
    start: _token*

    _token: LEFT_PAREN | RIGHT_PAREN | LEFT_BRACE | RIGHT_BRACE
          | COMMA | DOT | MINUS | PLUS | SEMICOLON | SLASH | STAR
          | BANG | BANG_EQUAL | EQUAL | EQUAL_EQUAL
          | GREATER | GREATER_EQUAL | LESS | LESS_EQUAL
          | IDENTIFIER | STRING | NUMBER
          | AND | CLASS | ELSE | FALSE | FOR | FUN | IF | NIL | OR
          | PRINT | RETURN | SUPER | THIS | TRUE | VAR | WHILE
          | ERROR

    LEFT_PAREN: "("
    RIGHT_PAREN: ")"
    LEFT_BRACE: "{"
    RIGHT_BRACE: "}"
    COMMA: ","
    DOT: "."
    MINUS: "-"
    PLUS: "+"
    SEMICOLON: ";"
    SLASH: "/"
    STAR: "*"
    BANG: "!"
    BANG_EQUAL: "!="
    EQUAL: "="
    EQUAL_EQUAL: "=="
    GREATER: ">"
    GREATER_EQUAL: ">="
    LESS: "<"
    LESS_EQUAL: "<="

    AND: "and"
    CLASS: "class"
    ELSE: "else"
    FALSE: "false"
    FOR: "for"
    FUN: "fun"
    IF: "if"
    NIL: "nil"
    OR: "or"
    PRINT: "print"
    RETURN: "return"
    SUPER: "super"
    THIS: "this"
    TRUE: "true"
    VAR: "var"
    WHILE: "while"

    IDENTIFIER: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /[0-9]+(\.[0-9]+)?/
    // the closing quote is optional so that an unterminated string still lexes
    STRING: /"[^"]*"?/
    // anything else; lowest priority so it only fires when nothing else matches
    ERROR.-1: /./

    COMMENT: /\/\/[^\n]*/
    WS: /\s+/
    %ignore COMMENT
    %ignore WS
"""


_LARK = Lark(LOX_TOKENS, parser='lalr', lexer='basic')


class TokenKind(Enum):
    # Single-character tokens
    LEFT_PAREN = 'LEFT_PAREN'
    RIGHT_PAREN = 'RIGHT_PAREN'
    LEFT_BRACE = 'LEFT_BRACE'
    RIGHT_BRACE = 'RIGHT_BRACE'
    COMMA = 'COMMA'
    DOT = 'DOT'
    MINUS = 'MINUS'
    PLUS = 'PLUS'
    SEMICOLON = 'SEMICOLON'
    SLASH = 'SLASH'
    STAR = 'STAR'
    # One or two character tokens
    BANG = 'BANG'
    BANG_EQUAL = 'BANG_EQUAL'
    EQUAL = 'EQUAL'
    EQUAL_EQUAL = 'EQUAL_EQUAL'
    GREATER = 'GREATER'
    GREATER_EQUAL = 'GREATER_EQUAL'
    LESS = 'LESS'
    LESS_EQUAL = 'LESS_EQUAL'
    # Literals
    IDENTIFIER = 'IDENTIFIER'
    STRING = 'STRING'
    NUMBER = 'NUMBER'
    # Keywords
    AND = 'AND'
    CLASS = 'CLASS'
    ELSE = 'ELSE'
    FALSE = 'FALSE'
    FOR = 'FOR'
    FUN = 'FUN'
    IF = 'IF'
    NIL = 'NIL'
    OR = 'OR'
    PRINT = 'PRINT'
    RETURN = 'RETURN'
    SUPER = 'SUPER'
    THIS = 'THIS'
    TRUE = 'TRUE'
    VAR = 'VAR'
    WHILE = 'WHILE'

    ERROR = 'ERROR'
    EOF = 'EOF'


@dataclass(frozen=True)
class Token:
    """A classified lexical unit and the position where it begins.

    `literal` holds the decoded value of NUMBER (a float) and STRING (the
    text between the quotes) tokens. `terminated` is False only for a
    STRING token that ran into the end of the input.
    """
    kind: TokenKind
    lexeme: str
    line: int
    column: int
    literal: Any = None
    terminated: bool = True

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.lexeme!r}, line={self.line})"


def _convert(raw) -> Token:
    kind = TokenKind[raw.type]
    text = str(raw)
    if kind is TokenKind.NUMBER:
        return Token(kind, text, raw.line, raw.column, float(text))
    if kind is TokenKind.STRING:
        terminated = len(text) > 1 and text.endswith('"')
        value = text[1:-1] if terminated else text[1:]
        return Token(kind, text, raw.line, raw.column, value, terminated)
    return Token(kind, text, raw.line, raw.column)


class Lexer:
    """Lazy, restartable token source for a piece of Lox source text.

    Every iteration starts again from the beginning of the source and
    ends with exactly one EOF token.
    """
    def __init__(self, source: str):
        self.source = source

    def __iter__(self) -> Iterator[Token]:
        for raw in _LARK.lex(self.source):
            yield _convert(raw)
        yield self.eof()

    def eof(self) -> Token:
        line = self.source.count('\n') + 1
        column = len(self.source) - (self.source.rfind('\n') + 1) + 1
        return Token(TokenKind.EOF, '', line, column)


def tokenize(source: str) -> List[Token]:
    """Return every token of `source` as a list, EOF included."""
    return list(Lexer(source))


class TokenStream:
    """One-token lookahead cursor over a (possibly lazy) token sequence.

    The sequence must end with an EOF token. Once the cursor reaches EOF
    it stays there: further calls to `advance` keep returning it.
    """
    def __init__(self, tokens: Iterable[Token]):
        self._tokens = iter(tokens)
        self._current = next(self._tokens)
        self._previous: Optional[Token] = None

    def peek(self) -> Token:
        return self._current

    def previous(self) -> Optional[Token]:
        return self._previous

    def is_at_end(self) -> bool:
        return self._current.kind is TokenKind.EOF

    def check(self, *kinds: TokenKind) -> bool:
        return self._current.kind in kinds

    def advance(self) -> Token:
        token = self._current
        if token.kind is not TokenKind.EOF:
            self._previous = token
            self._current = next(self._tokens)
        return token
