# tests/test_diagnostics.py
"""
Tests for Message / Diagnostic serialization and the severity table.
"""

import json

import pytest

from conftest import check
from errgroupcheck.diagnostics import (
    CATEGORY,
    Diagnostic,
    Severity,
    SuppressionManager,
)
from errgroupcheck.syntax import Position

CODE = """
    package p

    func run() {
    \tgroup := errgroup.Group{}
    }
"""


@pytest.fixture
def message():
    return check(CODE, "svc/run.go")[0]


class TestSeverity:

    @pytest.mark.parametrize("text,expected", [
        ("error", Severity.ERROR),
        ("WARNING", Severity.WARNING),
        (" note ", Severity.NOTE),
    ])
    def test_from_string(self, text, expected):
        assert Severity.from_string(text) is expected

    def test_unknown(self):
        with pytest.raises(ValueError):
            Severity.from_string("fatal")

    def test_sarif_levels(self):
        assert {s.sarif_level for s in Severity} == {"error", "warning", "note"}


class TestMessage:

    def test_to_dict(self, message):
        data = message.to_dict()
        assert data["filename"] == "svc/run.go"
        assert data["handle"] == "group"
        assert (data["line"], data["column"]) == (4, 2)
        assert data["fixEnd"] - data["fixStart"] == len("group")
        assert data["lineNumbers"] == [4]
        assert data["messageType"] == "add"
        assert data["message"] == "errgroup 'group' does not have Wait called"

    def test_is_json_serializable(self, message):
        assert json.loads(json.dumps(message.to_dict()))["handle"] == "group"


class TestDiagnostic:

    def test_from_message(self, message):
        diag = Diagnostic.from_message(message, Severity.NOTE)
        assert diag.filename == "svc/run.go"
        assert diag.position == message.diagnostic
        assert diag.end == message.fix_end
        assert diag.category == CATEGORY
        assert diag.severity is Severity.NOTE
        assert len(diag.suggested_fixes) == 1

    def test_to_dict_carries_fix(self, message):
        data = Diagnostic.from_message(message).to_dict()
        assert data["severity"] == "warning"
        edit = data["suggestedFixes"][0]["edits"][0]
        assert edit["newText"] == "errgroup.Wait()"
        assert edit["start"] == message.fix_start.offset
        assert edit["end"] == message.fix_end.offset

    def test_json_str_is_single_line(self, message):
        text = Diagnostic.from_message(message).to_json_str()
        assert "\n" not in text
        assert json.loads(text)["file"] == "svc/run.go"

    def test_gcc_format(self, message):
        line = Diagnostic.from_message(message).to_gcc_format()
        assert line == (
            "svc/run.go:4:2: warning: "
            "errgroup 'group' does not have Wait called [errgroupcheck]"
        )

    def test_diagnostic_without_fixes(self):
        diag = Diagnostic(filename="a.go", position=Position(0, 1, 1), message="m")
        assert diag.to_dict()["suggestedFixes"] == []


class TestSuppressionManager:

    def test_exact_and_suffix_exclusion(self):
        sm = SuppressionManager()
        sm.add_file_exclusion("internal/legacy.go")
        assert sm.is_file_excluded("internal/legacy.go")
        assert sm.is_file_excluded("/src/app/internal/legacy.go")
        assert not sm.is_file_excluded("internal/modern.go")

    def test_glob_exclusion(self):
        sm = SuppressionManager()
        sm.add_file_exclusion("*_test.go")
        assert sm.is_file_excluded("pkg/run_test.go")
        assert not sm.is_file_excluded("pkg/run.go")

    def test_excluded_message_is_suppressed(self, message):
        sm = SuppressionManager()
        sm.add_file_exclusion("svc/*")
        assert sm.filter_messages([message]) == []

    def test_load_counts_directives(self, go_source):
        source = go_source("""
            package p

            // ordinary comment
            func run() {
            \ta := errgroup.Group{} //nolint
            \tb := errgroup.Group{} //nolint:errgroupcheck
            \tc := errgroup.Group{} //nolint:govet
            }
        """)
        sm = SuppressionManager()
        assert sm.load_inline_suppressions(source) == 2
