"""
errgroupcheck/diagnostics.py
════════════════════════════

Diagnostic model shared by the checker, the reporter and the CLI.

  • ``Message``            — batch-mode finding, one per unwaited handle
  • ``Diagnostic``         — direct-report payload with suggested fixes
  • ``SuppressionManager`` — ``//nolint`` comments and file exclusions

Severity
────────
Every finding is advisory.  ``Severity`` only picks the colour and the
SARIF level used when a finding is rendered.
"""

from __future__ import annotations

import enum
import json
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from fnmatch import fnmatch
from typing import Any, Dict, Iterable, List, Optional, Tuple

from errgroupcheck.syntax import COMMENT, Position, SourceFile, iter_nodes

_log = logging.getLogger(__name__)

CATEGORY = "errgroupcheck"
WAIT_FIX_TEXT = "errgroup.Wait()"


class MessageType(enum.IntEnum):
    """What has to happen to fix the finding."""
    ADD = 1


class Severity(enum.Enum):
    """
    Rendering severity.

    Each carries:
      • label       — the word printed in front of the message
      • color       — termcolor colour name
      • sarif_level — SARIF 2.1.0 ``level`` string
    """

    ERROR = ("error", "red", "error")
    WARNING = ("warning", "yellow", "warning")
    NOTE = ("note", "cyan", "note")

    def __init__(self, label: str, color: str, sarif_level: str) -> None:
        self.label = label
        self.color = color
        self.sarif_level = sarif_level

    @classmethod
    def from_string(cls, s: str) -> Severity:
        s_low = s.strip().lower()
        for member in cls:
            if member.label == s_low:
                return member
        raise ValueError(f"unknown severity: {s!r}")


@dataclass(frozen=True)
class Message:
    """
    A single unwaited errgroup.

    Attributes
    ----------
    filename     : file the handle was declared in
    handle       : name of the unwaited handle
    diagnostic   : anchor position (start of the binding identifier)
    fix_start    : start of the identifier token
    fix_end      : end of the identifier token (exclusive)
    line_numbers : affected lines
    message_type : kind of fix required
    message      : human-readable text naming the handle
    """
    filename: str
    handle: str
    diagnostic: Position
    fix_start: Position
    fix_end: Position
    line_numbers: Tuple[int, ...]
    message_type: MessageType
    message: str

    @property
    def line(self) -> int:
        return self.diagnostic.line

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.filename,
            "handle": self.handle,
            "line": self.diagnostic.line,
            "column": self.diagnostic.column,
            "fixStart": self.fix_start.offset,
            "fixEnd": self.fix_end.offset,
            "lineNumbers": list(self.line_numbers),
            "messageType": self.message_type.name.lower(),
            "message": self.message,
        }


@dataclass(frozen=True)
class TextEdit:
    """Replace source bytes ``[pos, end)`` with ``new_text``."""
    pos: Position
    end: Position
    new_text: bytes


@dataclass(frozen=True)
class SuggestedFix:
    message: str
    text_edits: Tuple[TextEdit, ...] = ()


@dataclass(frozen=True)
class Diagnostic:
    """A finding as handed to a direct-report callback."""
    filename: str
    position: Position
    message: str
    category: str = CATEGORY
    severity: Severity = Severity.WARNING
    end: Optional[Position] = None
    suggested_fixes: Tuple[SuggestedFix, ...] = ()

    @classmethod
    def from_message(cls, msg: Message, severity: Severity = Severity.WARNING) -> Diagnostic:
        fix = SuggestedFix(
            message=f"call Wait on '{msg.handle}' before it goes out of scope",
            text_edits=(TextEdit(
                pos=msg.fix_start,
                end=msg.fix_end,
                new_text=WAIT_FIX_TEXT.encode("utf-8"),
            ),),
        )
        return cls(
            filename=msg.filename,
            position=msg.diagnostic,
            end=msg.fix_end,
            message=msg.message,
            severity=severity,
            suggested_fixes=(fix,),
        )

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.filename,
            "line": self.position.line,
            "column": self.position.column,
            "severity": self.severity.label,
            "category": self.category,
            "message": self.message,
            "suggestedFixes": [
                {
                    "message": fix.message,
                    "edits": [
                        {
                            "start": edit.pos.offset,
                            "end": edit.end.offset,
                            "newText": edit.new_text.decode("utf-8"),
                        }
                        for edit in fix.text_edits
                    ],
                }
                for fix in self.suggested_fixes
            ],
        }

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_dict())

    def to_gcc_format(self) -> str:
        """GCC-style: file:line:col: severity: message [category]."""
        return (
            f"{self.filename}:{self.position.line}:{self.position.column}: "
            f"{self.severity.label}: {self.message} [{self.category}]"
        )


# ═════════════════════════════════════════════════════════════════════════
#  SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

# //nolint  or  //nolint:errgroupcheck,govet // reason
_NOLINT_RE = re.compile(r"^//\s*nolint(?::(?P<linters>[\w,\-]+))?\b")


class SuppressionManager:
    """
    Decides which findings are silenced.

    Sources:
      1. Inline comments: ``//nolint`` or ``//nolint:errgroupcheck`` on the
         finding's line or on the line directly above it
         (the line above counts only for a directive on its own line)
      2. File exclusions: glob patterns matched against the filename, or a
         trailing run of whole path components

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.add_file_exclusion("*_gen.go")
    >>> sm.load_inline_suppressions(source_file)
    >>> kept = sm.filter_messages(messages)
    """

    def __init__(self) -> None:
        # filename → {line: directive is alone on its line}
        self._inline: Dict[str, Dict[int, bool]] = defaultdict(dict)
        self._file_patterns: List[str] = []

    def add_file_exclusion(self, pattern: str) -> None:
        self._file_patterns.append(pattern)

    def is_file_excluded(self, filename: str) -> bool:
        for pattern in self._file_patterns:
            if filename == pattern or filename.endswith("/" + pattern) or fnmatch(filename, pattern):
                return True
        return False

    def load_inline_suppressions(self, source: SourceFile) -> int:
        """Scan comment nodes of *source*; returns the number of directives."""
        found = 0
        for node in iter_nodes(source.root):
            if node.type != COMMENT:
                continue
            match = _NOLINT_RE.match(source.text(node))
            if match is None:
                continue
            linters = match.group("linters")
            if linters and CATEGORY not in linters.split(","):
                continue
            line = node.start_point[0] + 1
            own_line = source.line_text(line).lstrip().startswith("//")
            self._inline[source.filename][line] = own_line
            found += 1
        if found:
            _log.debug("%s: %d nolint directive(s)", source.filename, found)
        return found

    def is_suppressed(self, msg: Message) -> bool:
        if self.is_file_excluded(msg.filename):
            return True
        lines = self._inline.get(msg.filename)
        if not lines:
            return False
        # A trailing directive covers its own line only.
        return msg.line in lines or lines.get(msg.line - 1, False)

    def filter_messages(self, messages: Iterable[Message]) -> List[Message]:
        return [m for m in messages if not self.is_suppressed(m)]


__all__ = [
    "CATEGORY",
    "WAIT_FIX_TEXT",
    "MessageType",
    "Severity",
    "Message",
    "TextEdit",
    "SuggestedFix",
    "Diagnostic",
    "SuppressionManager",
]
