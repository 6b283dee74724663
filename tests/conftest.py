# tests/conftest.py
"""
Shared fixtures: Go source snippets parsed through the real tree-sitter
grammar, and an analysistest-style reader for ``// want`` expectations.
"""

import re
import textwrap
from pathlib import Path
from typing import List, Set, Tuple

import pytest

from errgroupcheck.checker import run_file
from errgroupcheck.syntax import SourceFile

TESTDATA = Path(__file__).parent / "testdata"

_WANT_RE = re.compile(r'//\s*want\s+"((?:[^"\\]|\\.)*)"')


def make_source(code: str, filename: str = "example.go") -> SourceFile:
    return SourceFile.from_string(filename, textwrap.dedent(code).lstrip("\n"))


def check(code: str, filename: str = "example.go"):
    """Run the per-file checker on a snippet."""
    return run_file(make_source(code, filename))


def want_expectations(path: Path) -> Set[Tuple[int, str]]:
    """Collect (line, message) pairs from ``// want "..."`` comments."""
    expected: Set[Tuple[int, str]] = set()
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        for match in _WANT_RE.finditer(line):
            expected.add((lineno, match.group(1).replace('\\"', '"')))
    return expected


def go_files(directory: Path) -> List[Path]:
    return sorted(directory.rglob("*.go"))


@pytest.fixture
def go_source():
    """Factory fixture: dedented Go code → SourceFile."""
    return make_source


@pytest.fixture
def testdata_dir() -> Path:
    return TESTDATA


@pytest.fixture
def write_go(tmp_path):
    """Write a Go file under tmp_path and return its path."""
    def _write(name: str, code: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(code).lstrip("\n"), encoding="utf-8")
        return path
    return _write
