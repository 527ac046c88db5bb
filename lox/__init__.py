# Lox language package
# This package provides a lexer, parser and tree-walking interpreter for Lox.
from .errors import LoxError, ParseError, LoxRuntimeError, UndefinedVariable
from .interpreter import Interpreter, RunResult, run_program, run_file
from .lexer import Lexer, Token, TokenKind, TokenStream, tokenize
from .parser import Parser, ParseResult, parse_program

__all__ = [
    'run_program',
    'run_file',
    'parse_program',
    'tokenize',
    'Interpreter',
    'RunResult',
    'Parser',
    'ParseResult',
    'Lexer',
    'Token',
    'TokenKind',
    'TokenStream',
    'LoxError',
    'ParseError',
    'LoxRuntimeError',
    'UndefinedVariable',
]
