"""
errgroupcheck/scopes.py
═══════════════════════

Lexical scope tracking for errgroup handles.

A ``Scope`` exists per function body (declaration, method or literal).
Blocks inside a body do not open scopes.  The ``ScopeStack`` always holds
a root scope; nothing is ever bound into it, and it is never popped.

Lookup walks from the innermost scope outwards, which mirrors closure
capture: a ``Wait`` inside a function literal satisfies a handle declared
by the enclosing function.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from errgroupcheck.errors import ScopeStackError


@dataclass(eq=False)
class TrackedHandle:
    """
    A variable bound to a freshly created errgroup.

    Attributes
    ----------
    name         : identifier the group is bound to
    binding_site : the identifier node at the binding (anchor + fix span)
    waited       : set once a ``Wait`` call on the handle is seen
    """
    name: str
    binding_site: Any
    waited: bool = False

    def mark_waited(self) -> None:
        self.waited = True


@dataclass
class Scope:
    """Handles declared directly in one function body, keyed by name."""
    handles: Dict[str, TrackedHandle] = field(default_factory=dict)

    def unwaited(self) -> Iterator[TrackedHandle]:
        """Handles never waited, in binding order."""
        for handle in self.handles.values():
            if not handle.waited:
                yield handle

    def __len__(self) -> int:
        return len(self.handles)


class ScopeStack:
    """
    Ordered stack of scopes; index 0 is the root.

    >>> stack = ScopeStack()
    >>> stack.push()
    >>> stack.bind("eg", TrackedHandle("eg", None))
    >>> stack.lookup("eg").waited
    False
    """

    def __init__(self) -> None:
        self._stack: List[Scope] = [Scope()]

    def push(self) -> None:
        self._stack.append(Scope())

    def pop(self) -> Scope:
        if len(self._stack) <= 1:
            raise ScopeStackError("cannot pop the root scope")
        return self._stack.pop()

    @property
    def current(self) -> Scope:
        return self._stack[-1]

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def at_root(self) -> bool:
        return len(self._stack) == 1

    def bind(self, name: str, handle: TrackedHandle) -> None:
        # Rebinding a name in the same scope replaces the earlier handle.
        self.current.handles[name] = handle

    def lookup(self, name: str) -> Optional[TrackedHandle]:
        for scope in reversed(self._stack):
            handle = scope.handles.get(name)
            if handle is not None:
                return handle
        return None


__all__ = ["TrackedHandle", "Scope", "ScopeStack"]
