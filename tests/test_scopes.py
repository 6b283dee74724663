# tests/test_scopes.py
"""
Tests for the scope stack that owns tracked errgroup handles.
"""

import pytest

from errgroupcheck.errors import ScopeStackError
from errgroupcheck.scopes import Scope, ScopeStack, TrackedHandle


def _handle(name):
    return TrackedHandle(name=name, binding_site=None)


class TestScopeStackBasics:

    def test_starts_with_root_only(self):
        stack = ScopeStack()
        assert stack.depth == 1
        assert stack.at_root
        assert len(stack.current) == 0

    def test_push_pop_balance(self):
        stack = ScopeStack()
        stack.push()
        stack.push()
        assert stack.depth == 3
        stack.pop()
        stack.pop()
        assert stack.at_root

    def test_pop_root_raises(self):
        stack = ScopeStack()
        with pytest.raises(ScopeStackError):
            stack.pop()

    def test_pop_returns_bound_handles(self):
        stack = ScopeStack()
        stack.push()
        eg = _handle("eg")
        stack.bind("eg", eg)
        scope = stack.pop()
        assert isinstance(scope, Scope)
        assert scope.handles == {"eg": eg}


class TestBindAndLookup:

    def test_bind_goes_to_current_scope_only(self):
        stack = ScopeStack()
        stack.push()
        stack.push()
        stack.bind("eg", _handle("eg"))
        inner = stack.pop()
        outer = stack.pop()
        assert "eg" in inner.handles
        assert "eg" not in outer.handles

    def test_lookup_missing_name(self):
        stack = ScopeStack()
        stack.push()
        assert stack.lookup("eg") is None

    def test_lookup_reaches_enclosing_scope(self):
        stack = ScopeStack()
        stack.push()
        outer = _handle("eg")
        stack.bind("eg", outer)
        stack.push()
        assert stack.lookup("eg") is outer

    def test_inner_binding_shadows_outer(self):
        stack = ScopeStack()
        stack.push()
        outer = _handle("eg")
        stack.bind("eg", outer)
        stack.push()
        inner = _handle("eg")
        stack.bind("eg", inner)
        assert stack.lookup("eg") is inner
        stack.pop()
        assert stack.lookup("eg") is outer

    def test_rebinding_replaces_handle(self):
        stack = ScopeStack()
        stack.push()
        first, second = _handle("eg"), _handle("eg")
        stack.bind("eg", first)
        stack.bind("eg", second)
        scope = stack.pop()
        assert list(scope.handles.values()) == [second]


class TestUnwaited:

    def test_only_unwaited_handles_are_listed(self):
        scope = Scope()
        a, b, c = _handle("a"), _handle("b"), _handle("c")
        for h in (a, b, c):
            scope.handles[h.name] = h
        b.mark_waited()
        assert [h.name for h in scope.unwaited()] == ["a", "c"]

    def test_mark_waited_through_nested_lookup(self):
        stack = ScopeStack()
        stack.push()
        eg = _handle("eg")
        stack.bind("eg", eg)
        stack.push()
        stack.lookup("eg").mark_waited()
        stack.pop()
        assert list(stack.pop().unwaited()) == []
