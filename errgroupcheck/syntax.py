"""
errgroupcheck/syntax.py
═══════════════════════

Go syntax layer built on tree-sitter.

Everything the checker knows about Go source comes through this module:

  • ``SourceFile``   — filename + bytes + lazily parsed tree
  • ``Position``     — byte offset resolved to 1-based line / column
  • ``iter_nodes``   — pre-order cursor with subtree pruning
  • node helpers     — field access, identifier tests, text extraction
  • ``is_go_file``   — source-file filter by extension

Node type names are those of the ``tree-sitter-go`` grammar.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Union

import tree_sitter as ts
import tree_sitter_go as tsgo

from errgroupcheck.errors import SourceReadError

_log = logging.getLogger(__name__)

GO_LANGUAGE = ts.Language(tsgo.language())
GO_EXTENSION = ".go"

# ── node kinds ──────────────────────────────────────────────────────────

FUNCTION_DECLARATION = "function_declaration"
METHOD_DECLARATION = "method_declaration"
FUNC_LITERAL = "func_literal"

SHORT_VAR_DECLARATION = "short_var_declaration"
ASSIGNMENT_STATEMENT = "assignment_statement"
VAR_SPEC = "var_spec"

CALL_EXPRESSION = "call_expression"
SELECTOR_EXPRESSION = "selector_expression"
COMPOSITE_LITERAL = "composite_literal"
QUALIFIED_TYPE = "qualified_type"
UNARY_EXPRESSION = "unary_expression"
IDENTIFIER = "identifier"
COMMENT = "comment"

FUNCTION_BODY_KINDS = frozenset({
    FUNCTION_DECLARATION,
    METHOD_DECLARATION,
    FUNC_LITERAL,
})

ASSIGNMENT_KINDS = frozenset({
    SHORT_VAR_DECLARATION,
    ASSIGNMENT_STATEMENT,
    VAR_SPEC,
})


def is_go_file(filename: Optional[str]) -> bool:
    """True when *filename* carries the Go source extension.

    Names too short to hold the extension are rejected up front.
    """
    if not filename or len(filename) < len(GO_EXTENSION):
        return False
    return filename[-len(GO_EXTENSION):] == GO_EXTENSION


@dataclass(frozen=True)
class Position:
    """A resolved point in a source file (line and column are 1-based)."""
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass
class SourceFile:
    """
    One Go source file as seen by the checker.

    The bytes are read and the tree is parsed on first use, so constructing
    a ``SourceFile`` is free and a disabled check never touches the disk.
    """
    filename: str
    _source: Optional[bytes] = field(default=None, repr=False)
    _tree: Any = field(default=None, repr=False)
    _line_starts: Optional[List[int]] = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> SourceFile:
        return cls(filename=str(path))

    @classmethod
    def from_string(cls, filename: str, text: str) -> SourceFile:
        return cls(filename=filename, _source=text.encode("utf-8"))

    @property
    def source(self) -> bytes:
        if self._source is None:
            try:
                self._source = Path(self.filename).read_bytes()
            except OSError as exc:
                raise SourceReadError(
                    f"cannot read source: {exc.strerror or exc}",
                    filename=self.filename,
                ) from exc
        return self._source

    @property
    def tree(self) -> Any:
        if self._tree is None:
            parser = ts.Parser(GO_LANGUAGE)
            self._tree = parser.parse(self.source)
            if self._tree.root_node.has_error:
                _log.debug("%s: syntax errors present, unmatched nodes are skipped",
                           self.filename)
        return self._tree

    @property
    def root(self) -> Any:
        return self.tree.root_node

    @property
    def has_syntax_errors(self) -> bool:
        return bool(self.root.has_error)

    def text(self, node: Any) -> str:
        """Source text covered by *node*."""
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def position(self, offset: int) -> Position:
        """Resolve a byte offset to line / column."""
        starts = self._lines()
        idx = bisect.bisect_right(starts, offset) - 1
        return Position(offset=offset, line=idx + 1, column=offset - starts[idx] + 1)

    def line_text(self, line: int) -> str:
        """The text of 1-based *line* without its newline, or ''."""
        starts = self._lines()
        if line < 1 or line > len(starts):
            return ""
        begin = starts[line - 1]
        end = starts[line] - 1 if line < len(starts) else len(self.source)
        return self.source[begin:end].decode("utf-8", errors="replace").rstrip("\r")

    def _lines(self) -> List[int]:
        if self._line_starts is None:
            starts = [0]
            data = self.source
            idx = data.find(b"\n")
            while idx != -1:
                starts.append(idx + 1)
                idx = data.find(b"\n", idx + 1)
            self._line_starts = starts
        return self._line_starts


# ── traversal ───────────────────────────────────────────────────────────

def iter_nodes(
    node: Any,
    prune: Optional[Callable[[Any], bool]] = None,
) -> Iterator[Any]:
    """
    Pre-order walk over *node* and its descendants.

    When *prune* returns True for a node, that node is still yielded but
    its children are not visited.
    """
    pending = [node]
    while pending:
        current = pending.pop()
        yield current
        if prune is not None and prune(current):
            continue
        pending.extend(reversed(current.children))


# ── node helpers ────────────────────────────────────────────────────────

def field_child(node: Any, name: str) -> Optional[Any]:
    return node.child_by_field_name(name)


def field_children(node: Any, name: str) -> List[Any]:
    return [c for c in node.children_by_field_name(name) if c.type != COMMENT]


def expression_items(node: Optional[Any]) -> List[Any]:
    """Named, non-comment children of an ``expression_list``."""
    if node is None:
        return []
    if node.type != "expression_list":
        return [node]
    return [c for c in node.named_children if c.type != COMMENT]


def is_identifier(node: Optional[Any]) -> bool:
    return node is not None and node.type == IDENTIFIER


def node_name(node: Any) -> str:
    """Identifier text of *node* (tree-sitter keeps the source on the tree)."""
    text = node.text
    return text.decode("utf-8") if text else ""


__all__ = [
    "GO_LANGUAGE",
    "GO_EXTENSION",
    "FUNCTION_BODY_KINDS",
    "ASSIGNMENT_KINDS",
    "Position",
    "SourceFile",
    "is_go_file",
    "iter_nodes",
    "field_child",
    "field_children",
    "expression_items",
    "is_identifier",
    "node_name",
]
