"""Abstract Syntax Tree (AST) definitions for the Lox language.

The parser produces a list of statement nodes; the interpreter walks
them. Nodes keep the tokens they were built from (operators, names,
the closing paren of a call, the `return` keyword) so that runtime
errors can point back at a source line. Every composite node owns its
children exclusively: the AST is a tree, never a graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .lexer import Token


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Expr(Node):
    pass


@dataclass
class Stmt(Node):
    pass


# Expressions

@dataclass
class Literal(Expr):
    value: Any  # None, bool, float or str


@dataclass
class Grouping(Expr):
    expression: Expr


@dataclass
class UnaryOp(Expr):
    operator: Token
    operand: Expr


@dataclass
class BinaryOp(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass
class Logical(Expr):
    left: Expr
    operator: Token  # `and` or `or`
    right: Expr


@dataclass
class Variable(Expr):
    name: Token


@dataclass
class Assign(Expr):
    name: Token
    value: Expr


@dataclass
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, used to locate call errors
    args: List[Expr]


# Statements

@dataclass
class ExprStmt(Stmt):
    expression: Expr


@dataclass
class PrintStmt(Stmt):
    expression: Expr


@dataclass
class VarDecl(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass
class Block(Stmt):
    statements: List[Stmt]


@dataclass
class IfStmt(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt


@dataclass
class FuncDecl(Stmt):
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass
class ReturnStmt(Stmt):
    keyword: Token
    value: Optional[Expr]
