"""
errgroupcheck/recognizers.py
════════════════════════════

Syntax-only pattern matchers for the errgroup idiom.

  ┌────────────────────┐   binds    ┌─────────────┐   marks   ┌───────────────────┐
  │ BindingRecognizer  │ ─────────▶ │ ScopeStack  │ ◀──────── │  WaitRecognizer   │
  │ eg := errgroup...  │            │             │           │  eg.Wait()        │
  └────────────────────┘            └─────────────┘           └───────────────────┘

Matching is done on names (``errgroup``, ``Group``, ``WithContext``,
``Wait``), not on resolved types.  An aliased import of the errgroup
package is therefore not recognized, and any ``x.Wait()`` marks a tracked
handle named ``x``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from errgroupcheck.scopes import ScopeStack, TrackedHandle
from errgroupcheck.syntax import (
    CALL_EXPRESSION,
    COMPOSITE_LITERAL,
    QUALIFIED_TYPE,
    SELECTOR_EXPRESSION,
    UNARY_EXPRESSION,
    VAR_SPEC,
    expression_items,
    field_child,
    field_children,
    is_identifier,
    node_name,
)

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupPatterns:
    """Names that identify the task-group idiom."""
    package: str = "errgroup"
    group_type: str = "Group"
    constructor: str = "WithContext"
    wait_method: str = "Wait"


class Creation(enum.Enum):
    """How a right-hand expression creates a group, if it does."""
    COMPOSITE = "composite"      # errgroup.Group{} / &errgroup.Group{}
    CONSTRUCTOR = "constructor"  # errgroup.WithContext(ctx)


class BindingRecognizer:
    """
    Binds handles for assignment-like statements that create a group.

    Composite creation (including a ``var`` declared with the group type
    and no initializer) binds every identifier on the left.  Constructor
    creation binds only the first target, and only if it is an identifier:
    the remaining return values (the derived context) are never tracked.
    Field and index targets are skipped; they cannot be looked up by name
    later, so groups stored that way go unchecked.
    """

    def __init__(self, patterns: Optional[GroupPatterns] = None) -> None:
        self.patterns = patterns or GroupPatterns()

    def recognize(self, stmt: Any, scopes: ScopeStack) -> List[TrackedHandle]:
        """Bind handles created by *stmt* into the current scope."""
        if stmt.type == VAR_SPEC:
            # Package-level vars would land in the root scope, which never closes.
            if scopes.at_root:
                return []
            targets = field_children(stmt, "name")
            values = expression_items(field_child(stmt, "value"))
            if not values and self._is_group_type(field_child(stmt, "type")):
                # var eg errgroup.Group
                return [self._bind(t, scopes) for t in targets if is_identifier(t)]
        else:
            targets = expression_items(field_child(stmt, "left"))
            values = expression_items(field_child(stmt, "right"))

        bound: List[TrackedHandle] = []
        for value in values:
            creation = self.classify(value)
            if creation is Creation.COMPOSITE:
                for target in targets:
                    if is_identifier(target):
                        bound.append(self._bind(target, scopes))
            elif creation is Creation.CONSTRUCTOR:
                if targets and is_identifier(targets[0]):
                    bound.append(self._bind(targets[0], scopes))
        return bound

    def classify(self, expr: Any) -> Optional[Creation]:
        """Classify a right-hand expression, or None if it creates no group."""
        if expr.type == UNARY_EXPRESSION:
            operator = field_child(expr, "operator")
            operand = field_child(expr, "operand")
            if operator is not None and node_name(operator) == "&" and operand is not None:
                expr = operand
        if expr.type == COMPOSITE_LITERAL and self._is_group_type(field_child(expr, "type")):
            return Creation.COMPOSITE
        if expr.type == CALL_EXPRESSION and self._is_constructor(field_child(expr, "function")):
            return Creation.CONSTRUCTOR
        return None

    def _is_group_type(self, type_node: Optional[Any]) -> bool:
        if type_node is None or type_node.type != QUALIFIED_TYPE:
            return False
        package = field_child(type_node, "package")
        name = field_child(type_node, "name")
        return (
            package is not None and name is not None
            and node_name(package) == self.patterns.package
            and node_name(name) == self.patterns.group_type
        )

    def _is_constructor(self, callee: Optional[Any]) -> bool:
        if callee is None or callee.type != SELECTOR_EXPRESSION:
            return False
        operand = field_child(callee, "operand")
        member = field_child(callee, "field")
        return (
            is_identifier(operand) and member is not None
            and node_name(operand) == self.patterns.package
            and node_name(member) == self.patterns.constructor
        )

    @staticmethod
    def _bind(ident: Any, scopes: ScopeStack) -> TrackedHandle:
        name = node_name(ident)
        handle = TrackedHandle(name=name, binding_site=ident)
        scopes.bind(name, handle)
        _log.debug("bound errgroup %r at byte %d (scope depth %d)",
                   name, ident.start_byte, scopes.depth)
        return handle


class WaitRecognizer:
    """Marks a tracked handle waited on ``<ident>.Wait(...)``."""

    def __init__(self, patterns: Optional[GroupPatterns] = None) -> None:
        self.patterns = patterns or GroupPatterns()

    def recognize(self, call: Any, scopes: ScopeStack) -> Optional[TrackedHandle]:
        callee = field_child(call, "function")
        if callee is None or callee.type != SELECTOR_EXPRESSION:
            return None
        member = field_child(callee, "field")
        if member is None or node_name(member) != self.patterns.wait_method:
            return None
        receiver = field_child(callee, "operand")
        if not is_identifier(receiver):
            return None
        handle = scopes.lookup(node_name(receiver))
        if handle is not None:
            handle.mark_waited()
        return handle


__all__ = [
    "GroupPatterns",
    "Creation",
    "BindingRecognizer",
    "WaitRecognizer",
]
