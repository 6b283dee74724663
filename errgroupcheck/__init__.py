"""
errgroupcheck — errgroup Wait linter for Go
===========================================

Static checker that flags every ``errgroup`` created inside a Go function
body that never has ``Wait`` called before the body ends.

Modules
-------
syntax
    tree-sitter Go parsing, positions, traversal helpers.
scopes
    ``TrackedHandle``, ``Scope`` and ``ScopeStack``.
recognizers
    Syntax-only matchers for group creation and ``Wait`` calls.
checker
    ``FileChecker`` (per-file driver), ``Analyzer``, ``Settings``.
diagnostics
    ``Message``, ``Diagnostic`` and ``SuppressionManager``.
reporter
    Terminal / JSON / GCC / SARIF reporting channel.
main
    Command-line entry point.

Quick start
-----------
>>> from errgroupcheck import SourceFile, run_file
>>> src = SourceFile.from_string("a.go", "package a\\nfunc f() { eg := errgroup.Group{} }\\n")
>>> [m.message for m in run_file(src)]
["errgroup 'eg' does not have Wait called"]
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "0.1.0"
__license__ = "MIT"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from errgroupcheck.errors import (  # noqa: E402
    ErrgroupCheckError,
    ReportWriteError,
    ScopeStackError,
    SourceReadError,
)
from errgroupcheck.syntax import Position, SourceFile, is_go_file  # noqa: E402
from errgroupcheck.scopes import Scope, ScopeStack, TrackedHandle  # noqa: E402
from errgroupcheck.recognizers import (  # noqa: E402
    BindingRecognizer,
    GroupPatterns,
    WaitRecognizer,
)
from errgroupcheck.diagnostics import (  # noqa: E402
    Diagnostic,
    Message,
    MessageType,
    Severity,
    SuggestedFix,
    SuppressionManager,
    TextEdit,
)
from errgroupcheck.checker import (  # noqa: E402
    Analyzer,
    FileChecker,
    Pass,
    RunningMode,
    Settings,
    run_file,
)

__all__: List[str] = [
    "__version__",
    "ErrgroupCheckError",
    "ReportWriteError",
    "ScopeStackError",
    "SourceReadError",
    "Position",
    "SourceFile",
    "is_go_file",
    "Scope",
    "ScopeStack",
    "TrackedHandle",
    "BindingRecognizer",
    "GroupPatterns",
    "WaitRecognizer",
    "Diagnostic",
    "Message",
    "MessageType",
    "Severity",
    "SuggestedFix",
    "SuppressionManager",
    "TextEdit",
    "Analyzer",
    "FileChecker",
    "Pass",
    "RunningMode",
    "Settings",
    "run_file",
]
