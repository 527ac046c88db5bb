"""Variable scopes for the Lox interpreter.

Scopes live in an arena owned by `Environments` and are addressed by
integer handles. A scope record holds its bindings and the handle of its
enclosing scope, so a chain of scopes is a chain of indices rather than
a chain of object references. Functions keep the handle of the scope
they closed over; such scopes are pinned and never released.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lox.errors import UndefinedVariable
from lox.lexer import Token


@dataclass
class Scope:
    parent: Optional[int]
    values: Dict[str, Any] = field(default_factory=dict)
    pinned: bool = False


class Environments:
    """Arena of scopes. Handle `globals` is created with the arena."""
    def __init__(self):
        self._scopes: List[Optional[Scope]] = []
        self._free: List[int] = []
        self.globals = self.push(None)
        self.pin(self.globals)

    def push(self, parent: Optional[int]) -> int:
        scope = Scope(parent)
        if self._free:
            handle = self._free.pop()
            self._scopes[handle] = scope
        else:
            handle = len(self._scopes)
            self._scopes.append(scope)
        return handle

    def release(self, handle: int):
        # Pinned scopes are reachable from a function value and must stay.
        scope = self.scope(handle)
        if scope.pinned:
            return
        self._scopes[handle] = None
        self._free.append(handle)

    def pin(self, handle: int):
        current: Optional[int] = handle
        while current is not None:
            scope = self.scope(current)
            if scope.pinned:
                # ancestors of a pinned scope are already pinned
                break
            scope.pinned = True
            current = scope.parent

    def scope(self, handle: int) -> Scope:
        scope = self._scopes[handle]
        if scope is None:
            raise KeyError(f'scope {handle} has been released')
        return scope

    def parent(self, handle: int) -> Optional[int]:
        return self.scope(handle).parent

    def define(self, handle: int, name: str, value: Any):
        self.scope(handle).values[name] = value

    def resolve(self, handle: int, name: str) -> Optional[Scope]:
        """Return the nearest scope, walking outward, that binds `name`."""
        current: Optional[int] = handle
        while current is not None:
            scope = self.scope(current)
            if name in scope.values:
                return scope
            current = scope.parent
        return None

    def get(self, handle: int, name: Token) -> Any:
        scope = self.resolve(handle, name.lexeme)
        if scope is None:
            raise UndefinedVariable(name)
        return scope.values[name.lexeme]

    def assign(self, handle: int, name: Token, value: Any):
        scope = self.resolve(handle, name.lexeme)
        if scope is None:
            raise UndefinedVariable(name)
        scope.values[name.lexeme] = value

    def live_count(self) -> int:
        return sum(1 for scope in self._scopes if scope is not None)
