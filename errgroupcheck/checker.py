"""
errgroupcheck/checker.py
════════════════════════

The errgroup wait checker: per-file driver plus the multi-file analyzer.

Architecture
────────────

  ┌──────────────────────────────────────────────────────────────┐
  │                          Analyzer                            │
  │   settings toggle ─▶ file filter ─▶ FileChecker (per file)   │
  │                                        │                     │
  │        ┌───────────────────────────────┼──────────────┐      │
  │        │  ScopeStack  ◀── BindingRecognizer           │      │
  │        │              ◀── WaitRecognizer              │      │
  │        │  pop ─▶ scope-close report ─▶ Message        │      │
  │        └──────────────────────────────────────────────┘      │
  │                                        │                     │
  │             SuppressionManager ────────┤                     │
  │                                        ▼                     │
  │     NATIVE:  Pass.report(Diagnostic)   GOLANGCI: return list │
  └──────────────────────────────────────────────────────────────┘

Each ``FileChecker`` owns its own ``ScopeStack``, so files can be checked
independently (and concurrently by a host) without shared state.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from errgroupcheck.diagnostics import (
    Diagnostic,
    Message,
    MessageType,
    Severity,
    SuppressionManager,
)
from errgroupcheck.errors import SourceReadError
from errgroupcheck.recognizers import BindingRecognizer, GroupPatterns, WaitRecognizer
from errgroupcheck.scopes import Scope, ScopeStack
from errgroupcheck.syntax import (
    ASSIGNMENT_KINDS,
    CALL_EXPRESSION,
    FUNCTION_BODY_KINDS,
    SourceFile,
    field_child,
    is_go_file,
)

_log = logging.getLogger(__name__)

ANALYZER_NAME = "errgroupcheck"
ANALYZER_DOC = "Checks that each errgroup has Wait called at least once"


class RunningMode(enum.Enum):
    """Where findings go: reported directly, or returned to a host linter."""
    NATIVE = "native"
    GOLANGCI = "golangci"


@dataclass
class Settings:
    """
    Checker configuration.

    Attributes
    ----------
    require_wait : enforce that every errgroup is waited (the whole check)
    mode         : reporting channel, see ``RunningMode``
    severity     : severity attached to direct-report diagnostics
    patterns     : names identifying the errgroup idiom
    """
    require_wait: bool = True
    mode: RunningMode = RunningMode.NATIVE
    severity: Severity = Severity.WARNING
    patterns: GroupPatterns = field(default_factory=GroupPatterns)

    @classmethod
    def default(cls) -> Settings:
        return cls()


# ═════════════════════════════════════════════════════════════════════════
#  PER-FILE DRIVER
# ═════════════════════════════════════════════════════════════════════════

class FileChecker:
    """
    One traversal of one file.

    Function bodies (declarations, methods, literals) are handled by
    ``_inspect_scoped``, which owns the whole body: the enclosing walk never
    descends into it again.  Inside a body the walk uses an explicit stack,
    so Python recursion only grows with function nesting.
    """

    def __init__(self, source: SourceFile, patterns: Optional[GroupPatterns] = None) -> None:
        self.source = source
        self.scopes = ScopeStack()
        self.bindings = BindingRecognizer(patterns)
        self.waits = WaitRecognizer(patterns)
        self.messages: List[Message] = []

    def run(self) -> List[Message]:
        self._inspect(self.source.root)
        self.messages.sort(key=lambda m: m.diagnostic.offset)
        return self.messages

    def _inspect_scoped(self, body: Any) -> None:
        self.scopes.push()
        self._inspect(body)
        self._close_scope(self.scopes.pop())

    def _inspect(self, root: Any) -> None:
        pending = [root]
        while pending:
            node = pending.pop()
            kind = node.type

            if kind in FUNCTION_BODY_KINDS:
                body = field_child(node, "body")
                if body is not None:
                    self._inspect_scoped(body)
                continue

            if kind in ASSIGNMENT_KINDS:
                self.bindings.recognize(node, self.scopes)
            elif kind == CALL_EXPRESSION:
                self.waits.recognize(node, self.scopes)

            pending.extend(reversed(node.children))

    def _close_scope(self, scope: Scope) -> None:
        """Turn every unwaited handle of a popped scope into a Message."""
        for handle in sorted(scope.unwaited(), key=lambda h: h.binding_site.start_byte):
            ident = handle.binding_site
            start = self.source.position(ident.start_byte)
            end = self.source.position(ident.end_byte)
            self.messages.append(Message(
                filename=self.source.filename,
                handle=handle.name,
                diagnostic=start,
                fix_start=start,
                fix_end=end,
                line_numbers=(start.line,),
                message_type=MessageType.ADD,
                message=f"errgroup '{handle.name}' does not have Wait called",
            ))


def run_file(source: SourceFile, patterns: Optional[GroupPatterns] = None) -> List[Message]:
    """Check one parsed file; no filtering, no suppression."""
    return FileChecker(source, patterns).run()


# ═════════════════════════════════════════════════════════════════════════
#  ANALYZER
# ═════════════════════════════════════════════════════════════════════════

ReportFunc = Callable[[Diagnostic], None]


@dataclass
class Pass:
    """
    One analyzer run over a set of files.

    ``report`` receives diagnostics in native mode; it may be omitted in
    golangci mode, where findings are returned instead.  Files that could
    not be read are collected in ``errors`` and the run moves on.
    """
    files: Sequence[SourceFile]
    report: Optional[ReportFunc] = None
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    errors: List[SourceReadError] = field(default_factory=list)


class Analyzer:
    """
    Checks that each errgroup has Wait called at least once.

    Usage
    -----
    >>> analyzer = Analyzer(Settings(mode=RunningMode.GOLANGCI))
    >>> messages = analyzer.run(Pass(files=[SourceFile.from_path("main.go")]))
    """

    name = ANALYZER_NAME
    doc = ANALYZER_DOC

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings if settings is not None else Settings.default()

    def run(self, pass_: Pass) -> List[Message]:
        settings = self.settings
        if not settings.require_wait:
            _log.info("require-wait disabled, skipping %d file(s)", len(pass_.files))
            return []

        if settings.mode is RunningMode.NATIVE and pass_.report is None:
            raise ValueError("native mode needs a report callback")

        collected: List[Message] = []
        for source in pass_.files:
            if not is_go_file(source.filename):
                _log.debug("skipping non-Go file %r", source.filename)
                continue
            if pass_.suppressions.is_file_excluded(source.filename):
                _log.debug("skipping excluded file %r", source.filename)
                continue

            try:
                pass_.suppressions.load_inline_suppressions(source)
                messages = pass_.suppressions.filter_messages(
                    run_file(source, settings.patterns)
                )
            except SourceReadError as exc:
                _log.error("%s", exc)
                pass_.errors.append(exc)
                continue
            _log.info("%s: %d unwaited errgroup(s)", source.filename, len(messages))

            if settings.mode is RunningMode.GOLANGCI:
                collected.extend(messages)
                continue

            for msg in messages:
                pass_.report(Diagnostic.from_message(msg, settings.severity))

        return collected


__all__ = [
    "ANALYZER_NAME",
    "ANALYZER_DOC",
    "RunningMode",
    "Settings",
    "FileChecker",
    "run_file",
    "Pass",
    "Analyzer",
]
