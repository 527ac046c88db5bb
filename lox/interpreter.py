"""Tree-walking interpreter for the Lox language.

The interpreter executes the statement list produced by the parser
against a "current environment" handle into an `Environments` arena.
Statements are dispatched with one `isinstance` chain in `execute` and
expressions with one in `evaluate`.

Errors are not recorded in global flags. Parsing returns a
`ParseResult`, execution returns a `RunResult`, and whoever drives the
interpreter (the file runner or the prompt) decides what a failure
means for it.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, TextIO

from .ast import (
    Expr, Stmt, Literal, Grouping, UnaryOp, BinaryOp, Logical, Variable,
    Assign, Call, ExprStmt, PrintStmt, VarDecl, Block, IfStmt, WhileStmt,
    FuncDecl, ReturnStmt,
)
from .environment import Environments
from .errors import LoxError, LoxRuntimeError, ParseError, ReturnSignal
from .lexer import Token, TokenKind
from .parser import parse_program, report_to_stderr
from .types import LoxFunction, ieee_divide, is_number, is_truthy, to_string, type_name, values_equal

# Each Lox call costs about five Python frames (call, block, statement and
# nested expressions), so the default limit of 1000 is too low.
RECURSION_LIMIT = 5000


@dataclass
class RunResult:
    """Outcome of running a piece of source text.

    `value` is the value of the last statement executed when that was an
    expression statement (None otherwise).
    """
    parse_errors: List[ParseError] = field(default_factory=list)
    runtime_error: Optional[LoxRuntimeError] = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return not self.parse_errors and self.runtime_error is None

    @property
    def status(self) -> str:
        if self.parse_errors:
            return 'parse_error'
        if self.runtime_error is not None:
            return 'runtime_error'
        return 'ok'


class Interpreter:
    """Core interpreter that executes Lox ASTs.

    One interpreter owns one global scope, so several programs run on
    the same instance share their global variables and functions.
    """
    def __init__(self, out: Optional[TextIO] = None,
                 on_error: Optional[Callable[[LoxError], None]] = None,
                 debug_level: int = 0, debug_file: str = 'debug.txt'):
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        self.environments = Environments()
        self.globals = self.environments.globals
        self.environment = self.globals
        # None means whatever sys.stdout is at the time of the write
        self.out = out
        self.on_error = on_error if on_error is not None else report_to_stderr
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None
        # functions whose bodies are currently executing, innermost last
        self.calls: List[LoxFunction] = []

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self) -> 'Interpreter':
        return self

    def __exit__(self, *exc_info):
        self.close()

    # Public API
    def run(self, statements: List[Stmt]) -> RunResult:
        """Execute statements in order; stop at the first runtime error."""
        result = RunResult()
        self.debug(f"run {len(statements)} statement(s)")
        try:
            for stmt in statements:
                result.value = self.execute(stmt)
        except LoxRuntimeError as error:
            result.runtime_error = error
            self.debug(f"runtime error: {error.report()}")
            self.on_error(error)
        self.debug(f"run finished: {result.status}")
        return result

    def run_source(self, source: str) -> RunResult:
        """Parse and run `source`; nothing is executed if parsing fails."""
        parsed = parse_program(source, self.on_error)
        if not parsed.ok:
            return RunResult(parse_errors=parsed.errors)
        return self.run(parsed.statements)

    def execute_block(self, statements: List[Stmt], handle: int):
        previous = self.environment
        self.environment = handle
        try:
            for stmt in statements:
                self.execute(stmt)
        finally:
            self.environment = previous
            self.environments.release(handle)

    def execute(self, node: Stmt) -> Any:
        if isinstance(node, ExprStmt):
            return self.evaluate(node.expression)
        if isinstance(node, PrintStmt):
            value = self.evaluate(node.expression)
            print(to_string(value), file=self.out)
            return None
        if isinstance(node, VarDecl):
            value = None
            if node.initializer is not None:
                value = self.evaluate(node.initializer)
            self.environments.define(self.environment, node.name.lexeme, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name.lexeme}: {type_name(value)} = {to_string(value)}")
            return None
        if isinstance(node, Block):
            self.execute_block(node.statements, self.environments.push(self.environment))
            return None
        if isinstance(node, IfStmt):
            truthy = is_truthy(self.evaluate(node.condition))
            if self.debug_level >= 3:
                self.debug(f"if on line {node_line(node.condition)} -> {truthy}")
            if truthy:
                self.execute(node.then_branch)
            elif node.else_branch is not None:
                self.execute(node.else_branch)
            return None
        if isinstance(node, WhileStmt):
            while is_truthy(self.evaluate(node.condition)):
                self.execute(node.body)
            if self.debug_level >= 3:
                self.debug(f"while on line {node_line(node.condition)} finished")
            return None
        if isinstance(node, FuncDecl):
            # A function declared inside another function's body closes
            # over that function's own closure, not over the running call.
            if self.calls:
                closure = self.calls[-1].closure
            else:
                closure = self.environment
            self.environments.pin(closure)
            function = LoxFunction(node, closure)
            self.environments.define(self.environment, node.name.lexeme, function)
            if self.debug_level >= 2:
                self.debug(f"define function {node.name.lexeme}")
            return None
        if isinstance(node, ReturnStmt):
            if not self.calls:
                raise LoxRuntimeError(node.keyword, "Can't return from top-level code.")
            value = self.evaluate(node.value) if node.value is not None else None
            raise ReturnSignal(value)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Expr) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expression)
        if isinstance(node, Variable):
            return self.environments.get(self.environment, node.name)
        if isinstance(node, Assign):
            value = self.evaluate(node.value)
            self.environments.assign(self.environment, node.name, value)
            return value
        if isinstance(node, UnaryOp):
            operand = self.evaluate(node.operand)
            if node.operator.kind is TokenKind.BANG:
                return not is_truthy(operand)
            if not is_number(operand):
                raise LoxRuntimeError(node.operator, 'Operand must be a number.')
            return -operand
        if isinstance(node, Logical):
            left = self.evaluate(node.left)
            # Short-circuit: the deciding operand itself is the result
            if node.operator.kind is TokenKind.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right)
        if isinstance(node, BinaryOp):
            left = self.evaluate(node.left)
            right = self.evaluate(node.right)
            return self.apply_binary_op(node.operator, left, right)
        if isinstance(node, Call):
            callee = self.evaluate(node.callee)
            args = [self.evaluate(arg) for arg in node.args]
            return self.call_function(callee, args, node.paren)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: Any, args: List[Any], paren: Token) -> Any:
        if not isinstance(func, LoxFunction):
            raise LoxRuntimeError(paren, 'Can only call functions.')
        if len(args) != func.arity:
            raise LoxRuntimeError(paren, f"Expected {func.arity} arguments but got {len(args)}.")
        if self.debug_level >= 4:
            self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        # Create new environment for call; closure's env is parent
        call_env = self.environments.push(func.closure)
        for param, arg in zip(func.declaration.params, args):
            self.environments.define(call_env, param.lexeme, arg)
        self.calls.append(func)
        try:
            self.execute_block(func.declaration.body, call_env)
        except ReturnSignal as r:
            return r.value
        except RecursionError:
            raise LoxRuntimeError(paren, 'Stack overflow.') from None
        finally:
            self.calls.pop()
        return None

    def apply_binary_op(self, operator: Token, a: Any, b: Any) -> Any:
        kind = operator.kind
        if kind is TokenKind.EQUAL_EQUAL:
            return values_equal(a, b)
        if kind is TokenKind.BANG_EQUAL:
            return not values_equal(a, b)
        if kind is TokenKind.PLUS:
            if is_number(a) and is_number(b):
                return a + b
            if isinstance(a, str) and isinstance(b, str):
                return a + b
            raise LoxRuntimeError(operator, 'Operands must be two numbers or two strings.')
        # everything else is numeric only
        if not (is_number(a) and is_number(b)):
            raise LoxRuntimeError(operator, 'Operands must be numbers.')
        if kind is TokenKind.MINUS:
            return a - b
        if kind is TokenKind.STAR:
            return a * b
        if kind is TokenKind.SLASH:
            return ieee_divide(a, b)
        if kind is TokenKind.GREATER:
            return a > b
        if kind is TokenKind.GREATER_EQUAL:
            return a >= b
        if kind is TokenKind.LESS:
            return a < b
        if kind is TokenKind.LESS_EQUAL:
            return a <= b
        raise LoxRuntimeError(operator, f'Unknown operator {operator.lexeme}.')


def node_line(node: Expr) -> Optional[int]:
    """Best-effort source line of an expression, for debug traces."""
    if isinstance(node, (Variable, Assign)):
        return node.name.line
    if isinstance(node, (UnaryOp, BinaryOp, Logical)):
        return node.operator.line
    if isinstance(node, Call):
        return node.paren.line
    if isinstance(node, Grouping):
        return node_line(node.expression)
    return None


def run_program(source: str, debug_level: int = 0, out: Optional[TextIO] = None) -> RunResult:
    """Convenience function to parse and run a Lox program from source."""
    with Interpreter(out=out, debug_level=debug_level) as interpreter:
        return interpreter.run_source(source)


def run_file(file_path: str, debug_level: int = 0) -> RunResult:
    """Parse and run a Lox file on a fresh interpreter."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    return run_program(source, debug_level=debug_level)
