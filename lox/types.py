"""Runtime values and helpers for Lox.

Lox values map directly onto Python objects:

    nil      -> None
    boolean  -> bool
    number   -> float (always; literals are converted by the lexer)
    string   -> str
    function -> LoxFunction

This module holds the function value type together with the rules the
interpreter applies to values: truthiness, equality, the display form
used by `print`, and IEEE division.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .ast import FuncDecl


@dataclass(eq=False)
class LoxFunction:
    """A user-defined function.

    `closure` is the handle of the scope the function captured when it
    was declared; calls run in a fresh scope whose parent is that handle.
    Functions compare by identity.
    """
    declaration: FuncDecl
    closure: int

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    @property
    def arity(self) -> int:
        return len(self.declaration.params)

    def __repr__(self) -> str:
        return f"<fn {self.name}>"


def is_truthy(value: Any) -> bool:
    # nil and false are falsy, everything else is truthy
    return not (value is None or value is False)


def values_equal(a: Any, b: Any) -> bool:
    if a is None and b is None:
        return True
    # bool is a subclass of int in Python; never let True equal 1.0
    if type(a) is not type(b):
        return False
    if isinstance(a, LoxFunction):
        return a is b
    return a == b


def is_number(value: Any) -> bool:
    return isinstance(value, float)


def type_name(value: Any) -> str:
    """Return the Lox type name of a runtime value."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, LoxFunction):
        return 'function'
    return type(value).__name__


def format_number(value: float) -> str:
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'inf' if value > 0 else '-inf'
    # shortest round-trip digits, always written out positionally
    text = format(Decimal(repr(value)), 'f')
    if text.endswith('.0'):
        text = text[:-2]
    return text


def to_string(value: Any) -> str:
    """Convert a Lox value to the text `print` writes for it."""
    if value is None:
        return 'nil'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    return repr(value)


def ieee_divide(a: float, b: float) -> float:
    """Divide like an IEEE double would, instead of raising on zero."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b
