#!/usr/bin/env python3
"""
errgroupcheck/reporter.py
═════════════════════════

Direct-report channel for errgroupcheck diagnostics.

Output formats
──────────────
  • text  : rustc-style rendering, coloured through termcolor on a TTY,
            one plain line per finding otherwise
  • json  : one JSON object per line
  • gcc   : ``file:line:col: warning: message [errgroupcheck]``
  • SARIF : additionally written when ``sarif_path`` or
            $REPORT_GENERATE_SARIF names a file

Usage
─────
    with Reporter(output_format="text") as rep:
        analyzer.run(Pass(files, report=rep.report))
"""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Union

from termcolor import colored

from errgroupcheck import __version__
from errgroupcheck.diagnostics import Diagnostic, Severity
from errgroupcheck.errors import ReportWriteError
from errgroupcheck.syntax import SourceFile

OUTPUT_FORMATS = ("text", "json", "gcc")
TOOL_NAME = "errgroupcheck"
RULE_ID = "errgroupWait"


@dataclass
class ReporterStats:
    """Aggregate counts per severity."""
    error: int = 0
    warning: int = 0
    note: int = 0

    def record(self, severity: Severity) -> None:
        setattr(self, severity.label, getattr(self, severity.label) + 1)

    @property
    def total(self) -> int:
        return self.error + self.warning + self.note

    def summary_line(self) -> str:
        parts: List[str] = []
        if self.error:
            parts.append(f"{self.error} error{'s' if self.error != 1 else ''}")
        if self.warning:
            parts.append(f"{self.warning} warning{'s' if self.warning != 1 else ''}")
        if self.note:
            parts.append(f"{self.note} note{'s' if self.note != 1 else ''}")
        if not parts:
            return "no unwaited errgroups found"
        return "; ".join(parts) + f" ({self.total} total)"


# ═════════════════════════════════════════════════════════════════════════
#  RENDERERS
# ═════════════════════════════════════════════════════════════════════════

class _TerminalRenderer:
    """Rustc-style block with the offending source line underlined."""

    def __init__(self, stream: TextIO, sources: Dict[str, SourceFile]) -> None:
        self._stream = stream
        self._sources = sources

    def render(self, diag: Diagnostic) -> None:
        sev = diag.severity
        lines: List[str] = []

        header = colored(f"{sev.label}[{diag.category}]", sev.color, attrs=["bold"])
        lines.append(f"{header}: {colored(diag.message, attrs=['bold'])}")

        arrow = colored("-->", "blue", attrs=["bold"])
        lines.append(f"  {arrow} {diag.filename}:{diag.line}:{diag.column}")

        src_text = self._source_line(diag.filename, diag.line)
        gutter_w = len(str(diag.line)) + 1
        pipe = colored("|", "blue", attrs=["bold"])
        line_prefix = colored(str(diag.line).rjust(gutter_w), "blue", attrs=["bold"])
        lines.append(f" {line_prefix} {pipe} {src_text}")

        width = 1
        if diag.end is not None and diag.end.line == diag.line:
            width = max(diag.end.column - diag.column, 1)
        marker = colored("^" * width + " created here", sev.color, attrs=["bold"])
        lines.append(f" {' ' * (gutter_w + 1)} {pipe} {' ' * (diag.column - 1)}{marker}")

        for fix in diag.suggested_fixes:
            prefix = colored("help", "green", attrs=["bold"])
            lines.append(f"  = {prefix}: {fix.message}")

        lines.append("")
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()

    def _source_line(self, filename: str, line: int) -> str:
        source = self._sources.get(filename)
        if source is not None:
            return source.line_text(line)
        try:
            with open(filename, "r", errors="replace") as fh:
                for idx, text in enumerate(fh, 1):
                    if idx == line:
                        return text.rstrip("\n\r")
        except OSError:
            pass
        return ""


class _PlainRenderer:
    """Non-coloured renderer: one line per diagnostic."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        self._stream.write(
            f"{diag.filename}:{diag.line}:{diag.column}: {diag.message}\n"
        )
        self._stream.flush()


class _JsonRenderer:
    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        self._stream.write(diag.to_json_str() + "\n")
        self._stream.flush()


class _GccRenderer:
    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render(self, diag: Diagnostic) -> None:
        self._stream.write(diag.to_gcc_format() + "\n")
        self._stream.flush()


# ═════════════════════════════════════════════════════════════════════════
#  SARIF 2.1.0 BUILDER
# ═════════════════════════════════════════════════════════════════════════

class _SarifBuilder:
    """Accumulates diagnostics and writes a SARIF 2.1.0 JSON file."""

    SARIF_VERSION = "2.1.0"
    SARIF_SCHEMA = (
        "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/"
        "Schemata/sarif-schema-2.1.0.json"
    )

    def __init__(self) -> None:
        self._results: List[Dict[str, Any]] = []

    def add(self, diag: Diagnostic) -> None:
        region: Dict[str, Any] = {
            "startLine": diag.line,
            "startColumn": diag.column,
        }
        if diag.end is not None:
            region["endLine"] = diag.end.line
            region["endColumn"] = diag.end.column
        result: Dict[str, Any] = {
            "ruleId": RULE_ID,
            "level": diag.severity.sarif_level,
            "message": {"text": diag.message},
            "locations": [{
                "physicalLocation": {
                    "artifactLocation": {"uri": diag.filename},
                    "region": region,
                }
            }],
        }
        fixes = []
        for fix in diag.suggested_fixes:
            fixes.append({
                "description": {"text": fix.message},
                "artifactChanges": [{
                    "artifactLocation": {"uri": diag.filename},
                    "replacements": [
                        {
                            "deletedRegion": {
                                "byteOffset": edit.pos.offset,
                                "byteLength": edit.end.offset - edit.pos.offset,
                            },
                            "insertedContent": {"text": edit.new_text.decode("utf-8")},
                        }
                        for edit in fix.text_edits
                    ],
                }],
            })
        if fixes:
            result["fixes"] = fixes
        self._results.append(result)

    def to_json(self, version: str = __version__) -> str:
        sarif: Dict[str, Any] = {
            "$schema": self.SARIF_SCHEMA,
            "version": self.SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": TOOL_NAME,
                            "version": version,
                            "rules": [{
                                "id": RULE_ID,
                                "shortDescription": {
                                    "text": "Checks that each errgroup has Wait called at least once",
                                },
                            }],
                        }
                    },
                    "results": self._results,
                }
            ],
        }
        return json.dumps(sarif, indent=2)

    def write(self, path: str) -> None:
        try:
            Path(path).write_text(self.to_json(), encoding="utf-8")
        except OSError as exc:
            raise ReportWriteError(f"failed to write SARIF: {exc}", filename=path) from exc


# ═════════════════════════════════════════════════════════════════════════
#  REPORTER
# ═════════════════════════════════════════════════════════════════════════

_Renderer = Union[_TerminalRenderer, _PlainRenderer, _JsonRenderer, _GccRenderer]


class Reporter:
    """
    Central diagnostic dispatcher; ``report`` is a ``Pass.report`` callback.

    Use as a context manager so ``finish()`` runs automatically::

        with Reporter() as rep:
            analyzer.run(Pass(files, report=rep.report))
    """

    def __init__(
        self,
        stream: TextIO = sys.stdout,
        colour: Optional[bool] = None,
        output_format: str = "text",
        sarif_path: Optional[str] = None,
        summary_stream: Optional[TextIO] = None,
    ) -> None:
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"unknown output format: {output_format!r}")
        self.stats = ReporterStats()
        self.diagnostics: List[Diagnostic] = []
        self._sources: Dict[str, SourceFile] = {}
        self._summary_stream = summary_stream if summary_stream is not None else sys.stderr

        use_colour = colour if colour is not None else hasattr(stream, "isatty") and stream.isatty()
        self._colour = bool(use_colour) and output_format == "text"
        self._renderer: _Renderer
        if output_format == "json":
            self._renderer = _JsonRenderer(stream)
        elif output_format == "gcc":
            self._renderer = _GccRenderer(stream)
        elif self._colour:
            self._renderer = _TerminalRenderer(stream, self._sources)
        else:
            self._renderer = _PlainRenderer(stream)

        self._sarif: Optional[_SarifBuilder] = None
        self._sarif_path = sarif_path or os.environ.get("REPORT_GENERATE_SARIF", "")
        if self._sarif_path:
            self._sarif = _SarifBuilder()

    def __enter__(self) -> Reporter:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.finish()

    def register_source(self, source: SourceFile) -> None:
        """Make *source* available for snippet rendering."""
        self._sources[source.filename] = source

    def report(self, diag: Diagnostic) -> None:
        self.stats.record(diag.severity)
        self.diagnostics.append(diag)
        self._renderer.render(diag)
        if self._sarif is not None:
            self._sarif.add(diag)

    def finish(self) -> ReporterStats:
        """Print the summary line and write SARIF if configured."""
        summary = self.stats.summary_line()
        if self._colour:
            color = "yellow" if self.stats.total else "green"
            self._summary_stream.write(colored(f"  ╰─ {summary}", color, attrs=["bold"]) + "\n")
        else:
            self._summary_stream.write(f"  {summary}\n")

        if self._sarif is not None:
            self._sarif.write(self._sarif_path)

        return self.stats


__all__ = [
    "OUTPUT_FORMATS",
    "Reporter",
    "ReporterStats",
]
