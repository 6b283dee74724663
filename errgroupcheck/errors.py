# errgroupcheck/errors.py
"""
Error types and exit codes for errgroupcheck.

Error Hierarchy:
────────────────
  ErrgroupCheckError (base)
  ├── SourceReadError    - a Go source file could not be read
  ├── ScopeStackError    - scope push/pop invariant violated
  └── ReportWriteError   - a report artifact (SARIF) could not be written

Findings about the checked code are never raised; they are diagnostics.
Only infrastructure failures travel as exceptions.
"""

from __future__ import annotations

from typing import Optional

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2


class ErrgroupCheckError(Exception):
    """Base class for every error raised by errgroupcheck."""

    def __init__(self, message: str, filename: Optional[str] = None) -> None:
        self.message = message
        self.filename = filename
        super().__init__(self.__str__())

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}: {self.message}"
        return self.message


class SourceReadError(ErrgroupCheckError):
    """A source file could not be opened or read."""


class ScopeStackError(ErrgroupCheckError):
    """Unbalanced scope handling (e.g. popping the root scope)."""


class ReportWriteError(ErrgroupCheckError):
    """A report file could not be written."""


__all__ = [
    "EXIT_OK",
    "EXIT_FINDINGS",
    "EXIT_INFRA",
    "ErrgroupCheckError",
    "SourceReadError",
    "ScopeStackError",
    "ReportWriteError",
]
