"""
Lexical scope management for the script interpreter.
Handles the global scope and the nested scopes pushed for loop bodies.
"""
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from gcad.core.values import Value
from gcad.utils.errors import ScriptNameError

logger = logging.getLogger(__name__)


class Scope:
    """A single frame of identifier bindings with a link to its parent."""

    def __init__(self, name: str, parent: Optional['Scope'] = None):
        self.name = name
        self.parent = parent
        self.bindings: Dict[str, Value] = {}

    def lookup(self, identifier: str) -> Optional[Value]:
        """Find a binding, walking outward through parent scopes."""
        scope = self
        while scope is not None:
            if identifier in scope.bindings:
                return scope.bindings[identifier]
            scope = scope.parent
        return None

    def assign(self, identifier: str, value: Value):
        self.bindings[identifier] = value


class ScopeStack:
    """Stack of active scopes; the bottom frame is the global scope."""

    def __init__(self):
        self.global_scope = Scope("global")
        self.frames: List[Scope] = [self.global_scope]

    @property
    def current(self) -> Scope:
        return self.frames[-1]

    @property
    def depth(self) -> int:
        return len(self.frames)

    def push(self, name: str) -> Scope:
        scope = Scope(name, parent=self.current)
        self.frames.append(scope)
        return scope

    def pop(self) -> Scope:
        if len(self.frames) == 1:
            raise RuntimeError("cannot pop the global scope")
        return self.frames.pop()

    @contextmanager
    def scoped(self, name: str) -> Iterator[Scope]:
        """Push a fresh scope for the duration of a with-block."""
        scope = self.push(name)
        try:
            yield scope
        finally:
            self.pop()

    def lookup(self, identifier: str) -> Value:
        value = self.current.lookup(identifier)
        if value is None:
            raise ScriptNameError(f"undefined variable '{identifier}'")
        return value

    def assign(self, identifier: str, value: Value):
        """Bind in the innermost scope; outer bindings are only shadowed."""
        logger.debug("%s = %s (scope '%s')", identifier, value, self.current.name)
        self.current.assign(identifier, value)

    def clear(self):
        self.global_scope = Scope("global")
        self.frames = [self.global_scope]
