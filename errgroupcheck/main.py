#!/usr/bin/env python3
"""errgroupcheck/main.py — CLI entry-point for errgroupcheck.

Usage examples
--------------
    # Check a package directory (walked recursively for *.go)
    errgroupcheck ./internal/worker

    # Machine-readable output, one JSON object per finding
    errgroupcheck --format json main.go

    # Return all findings as one JSON array for a host linter
    errgroupcheck --mode golangci ./...

    # Also write a SARIF report for code-scanning upload
    errgroupcheck --sarif errgroupcheck.sarif ./cmd

    # Turn the check off (useful to toggle from CI configuration)
    errgroupcheck --no-require-wait ./pkg

Exit codes
----------
    0   No unwaited errgroups.
    1   One or more findings were emitted.
    2   Infrastructure failure (unreadable file, unwritable report, etc.).

``python -m errgroupcheck`` runs the same entry point through
``errgroupcheck/__main__.py``.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from errgroupcheck import __version__
from errgroupcheck.checker import Analyzer, Pass, RunningMode, Settings
from errgroupcheck.diagnostics import Severity, SuppressionManager
from errgroupcheck.errors import EXIT_FINDINGS, EXIT_INFRA, EXIT_OK, ErrgroupCheckError
from errgroupcheck.reporter import OUTPUT_FORMATS, Reporter
from errgroupcheck.syntax import GO_EXTENSION, SourceFile

_log = logging.getLogger("errgroupcheck")

# Directories the Go tool skips when expanding package patterns.
_SKIPPED_DIRS = frozenset({"vendor", "testdata"})


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``errgroupcheck`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("errgroupcheck")
    root.setLevel(level)
    # Repeated main() calls replace the handler instead of stacking them.
    root.handlers[:] = [handler]


def _skip_dir(name: str) -> bool:
    return name in _SKIPPED_DIRS or name.startswith(".") or name.startswith("_")


def discover_sources(paths: Iterable[str]) -> Iterator[SourceFile]:
    """
    Expand CLI paths into source files.

    A trailing ``/...`` (Go package pattern) is accepted and means the same
    as the directory itself.  Explicit file paths are passed through
    unfiltered; the analyzer decides what to skip.
    """
    for raw in paths:
        if raw.endswith("/..."):
            raw = raw[:-4] or "."
        path = Path(raw)
        if path.is_dir():
            for dirpath, dirnames, filenames in os.walk(path):
                dirnames[:] = sorted(d for d in dirnames if not _skip_dir(d))
                for name in sorted(filenames):
                    if name.endswith(GO_EXTENSION):
                        yield SourceFile.from_path(Path(dirpath) / name)
        elif path.exists():
            yield SourceFile.from_path(path)
        else:
            raise ErrgroupCheckError("no such file or directory", filename=raw)


# ===========================================================================
# Argument parsing
# ===========================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="errgroupcheck",
        description="Checks that each errgroup has Wait called at least once",
    )
    parser.add_argument(
        "paths", nargs="*", default=["."],
        help="Go files or directories to check (default: current directory)",
    )
    parser.add_argument(
        "--require-wait", action=argparse.BooleanOptionalAction, default=True,
        help="Check that each errgroup has Wait called at least once",
    )
    parser.add_argument(
        "--mode", choices=[m.value for m in RunningMode],
        default=RunningMode.NATIVE.value,
        help="native: report each finding; golangci: print all findings as one JSON array",
    )
    parser.add_argument(
        "--format", dest="output_format", choices=OUTPUT_FORMATS, default=None,
        help="Output format in native mode (default: text)",
    )
    parser.add_argument(
        "--severity", choices=[s.label for s in Severity], default=Severity.WARNING.label,
        help="Severity attached to findings",
    )
    parser.add_argument(
        "--sarif", metavar="PATH", default=None,
        help="Also write a SARIF 2.1.0 report to PATH",
    )
    parser.add_argument(
        "--color", action=argparse.BooleanOptionalAction, default=None,
        help="Force coloured text output on or off (default: auto)",
    )
    parser.add_argument(
        "--exclude", metavar="PATTERN", action="append", default=[],
        help="Skip files matching the glob PATTERN (repeatable)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    return Settings(
        require_wait=args.require_wait,
        mode=RunningMode(args.mode),
        severity=Severity.from_string(args.severity),
    )


# ===========================================================================
# Entry point
# ===========================================================================

def _exit_code(pass_: Pass, findings: int) -> int:
    if pass_.errors:
        return EXIT_INFRA
    return EXIT_FINDINGS if findings else EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.mode == RunningMode.GOLANGCI.value and (args.output_format or args.sarif):
        parser.error("--format and --sarif only apply to --mode native")
    _configure_logging(args.verbose)

    settings = settings_from_args(args)
    analyzer = Analyzer(settings)

    suppressions = SuppressionManager()
    for pattern in args.exclude:
        suppressions.add_file_exclusion(pattern)

    try:
        files: List[SourceFile] = list(discover_sources(args.paths))
        _log.info("checking %d file(s)", len(files))

        if settings.mode is RunningMode.GOLANGCI:
            pass_ = Pass(files=files, suppressions=suppressions)
            messages = analyzer.run(pass_)
            sys.stdout.write(json.dumps([m.to_dict() for m in messages], indent=2) + "\n")
            return _exit_code(pass_, len(messages))

        with Reporter(
            stream=sys.stdout,
            colour=args.color,
            output_format=args.output_format or "text",
            sarif_path=args.sarif,
        ) as reporter:
            for source in files:
                reporter.register_source(source)
            pass_ = Pass(files=files, report=reporter.report, suppressions=suppressions)
            analyzer.run(pass_)
        return _exit_code(pass_, reporter.stats.total)
    except ErrgroupCheckError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA


if __name__ == "__main__":
    sys.exit(main())
