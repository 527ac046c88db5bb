"""JSON serialization/deserialization for Lox ASTs.

This module converts between the AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Tokens are kept in
full (kind, text, position, literal) so a reloaded AST reports errors
at the same source lines as the AST it was dumped from.
"""

from __future__ import annotations

from typing import Any, Dict

from .ast import (
    Literal,
    Grouping,
    UnaryOp,
    BinaryOp,
    Logical,
    Variable,
    Assign,
    Call,
    ExprStmt,
    PrintStmt,
    VarDecl,
    Block,
    IfStmt,
    WhileStmt,
    FuncDecl,
    ReturnStmt,
)
from .lexer import Token, TokenKind


def token_to_obj(t: Token) -> Dict[str, Any]:
    return {
        "kind": t.kind.name,
        "lexeme": t.lexeme,
        "line": t.line,
        "column": t.column,
        "literal": t.literal,
        "terminated": t.terminated,
    }


def token_from_obj(o: Dict[str, Any]) -> Token:
    return Token(
        TokenKind[o["kind"]],
        o["lexeme"],
        o["line"],
        o["column"],
        o.get("literal"),
        o.get("terminated", True),
    )


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]

    # Expressions
    if isinstance(node, Literal):
        return {"type": "Literal", "value": node.value}
    if isinstance(node, Grouping):
        return {"type": "Grouping", "expression": ast_to_obj(node.expression)}
    if isinstance(node, UnaryOp):
        return {"type": "UnaryOp", "operator": token_to_obj(node.operator), "operand": ast_to_obj(node.operand)}
    if isinstance(node, BinaryOp):
        return {
            "type": "BinaryOp",
            "left": ast_to_obj(node.left),
            "operator": token_to_obj(node.operator),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Logical):
        return {
            "type": "Logical",
            "left": ast_to_obj(node.left),
            "operator": token_to_obj(node.operator),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Variable):
        return {"type": "Variable", "name": token_to_obj(node.name)}
    if isinstance(node, Assign):
        return {"type": "Assign", "name": token_to_obj(node.name), "value": ast_to_obj(node.value)}
    if isinstance(node, Call):
        return {
            "type": "Call",
            "callee": ast_to_obj(node.callee),
            "paren": token_to_obj(node.paren),
            "args": [ast_to_obj(a) for a in node.args],
        }

    # Statements
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, PrintStmt):
        return {"type": "PrintStmt", "expression": ast_to_obj(node.expression)}
    if isinstance(node, VarDecl):
        return {"type": "VarDecl", "name": token_to_obj(node.name), "initializer": ast_to_obj(node.initializer)}
    if isinstance(node, Block):
        return {"type": "Block", "statements": [ast_to_obj(s) for s in node.statements]}
    if isinstance(node, IfStmt):
        return {
            "type": "IfStmt",
            "condition": ast_to_obj(node.condition),
            "then_branch": ast_to_obj(node.then_branch),
            "else_branch": ast_to_obj(node.else_branch),
        }
    if isinstance(node, WhileStmt):
        return {"type": "WhileStmt", "condition": ast_to_obj(node.condition), "body": ast_to_obj(node.body)}
    if isinstance(node, FuncDecl):
        return {
            "type": "FuncDecl",
            "name": token_to_obj(node.name),
            "params": [token_to_obj(p) for p in node.params],
            "body": [ast_to_obj(s) for s in node.body],
        }
    if isinstance(node, ReturnStmt):
        return {"type": "ReturnStmt", "keyword": token_to_obj(node.keyword), "value": ast_to_obj(node.value)}

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, list):
        return [ast_from_obj(o) for o in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")

    if t == "Literal":
        return Literal(value=obj["value"])
    if t == "Grouping":
        return Grouping(expression=ast_from_obj(obj["expression"]))
    if t == "UnaryOp":
        return UnaryOp(operator=token_from_obj(obj["operator"]), operand=ast_from_obj(obj["operand"]))
    if t == "BinaryOp":
        return BinaryOp(
            left=ast_from_obj(obj["left"]),
            operator=token_from_obj(obj["operator"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Logical":
        return Logical(
            left=ast_from_obj(obj["left"]),
            operator=token_from_obj(obj["operator"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Variable":
        return Variable(name=token_from_obj(obj["name"]))
    if t == "Assign":
        return Assign(name=token_from_obj(obj["name"]), value=ast_from_obj(obj["value"]))
    if t == "Call":
        return Call(
            callee=ast_from_obj(obj["callee"]),
            paren=token_from_obj(obj["paren"]),
            args=[ast_from_obj(a) for a in obj["args"]],
        )

    if t == "ExprStmt":
        return ExprStmt(expression=ast_from_obj(obj["expression"]))
    if t == "PrintStmt":
        return PrintStmt(expression=ast_from_obj(obj["expression"]))
    if t == "VarDecl":
        return VarDecl(name=token_from_obj(obj["name"]), initializer=ast_from_obj(obj.get("initializer")))
    if t == "Block":
        return Block(statements=[ast_from_obj(s) for s in obj["statements"]])
    if t == "IfStmt":
        return IfStmt(
            condition=ast_from_obj(obj["condition"]),
            then_branch=ast_from_obj(obj["then_branch"]),
            else_branch=ast_from_obj(obj.get("else_branch")),
        )
    if t == "WhileStmt":
        return WhileStmt(condition=ast_from_obj(obj["condition"]), body=ast_from_obj(obj["body"]))
    if t == "FuncDecl":
        return FuncDecl(
            name=token_from_obj(obj["name"]),
            params=[token_from_obj(p) for p in obj["params"]],
            body=[ast_from_obj(s) for s in obj["body"]],
        )
    if t == "ReturnStmt":
        return ReturnStmt(keyword=token_from_obj(obj["keyword"]), value=ast_from_obj(obj.get("value")))

    raise ValueError(f"Unknown AST node type: {t}")
