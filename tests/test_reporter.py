# tests/test_reporter.py
"""
Tests for the Reporter output formats, summary and SARIF file.
"""

import io
import json

import pytest

from conftest import check, make_source
from errgroupcheck.diagnostics import Diagnostic, Severity
from errgroupcheck.errors import ReportWriteError
from errgroupcheck.reporter import Reporter, ReporterStats

CODE = """
    package p

    func run() {
    \teg := errgroup.Group{}
    }
"""


@pytest.fixture
def diag():
    return Diagnostic.from_message(check(CODE, "run.go")[0])


@pytest.fixture(autouse=True)
def _no_sarif_env(monkeypatch):
    monkeypatch.delenv("REPORT_GENERATE_SARIF", raising=False)


def _reporter(fmt="text", **kwargs):
    out, summary = io.StringIO(), io.StringIO()
    rep = Reporter(stream=out, output_format=fmt, summary_stream=summary, **kwargs)
    return rep, out, summary


class TestReporterStats:

    def test_empty_summary(self):
        assert ReporterStats().summary_line() == "no unwaited errgroups found"

    def test_counts(self):
        stats = ReporterStats()
        stats.record(Severity.WARNING)
        stats.record(Severity.WARNING)
        stats.record(Severity.ERROR)
        assert stats.total == 3
        assert stats.summary_line() == "1 error; 2 warnings (3 total)"


class TestFormats:

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            Reporter(stream=io.StringIO(), output_format="xml")

    def test_plain_text(self, diag):
        rep, out, _ = _reporter("text", colour=False)
        rep.report(diag)
        assert out.getvalue() == "run.go:4:2: errgroup 'eg' does not have Wait called\n"

    def test_json_lines(self, diag):
        rep, out, _ = _reporter("json")
        rep.report(diag)
        rep.report(diag)
        lines = out.getvalue().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["message"] == diag.message

    def test_gcc(self, diag):
        rep, out, _ = _reporter("gcc")
        rep.report(diag)
        assert out.getvalue().startswith("run.go:4:2: warning: ")

    def test_coloured_terminal_shows_source_line(self, diag):
        rep, out, _ = _reporter("text", colour=True)
        rep.register_source(make_source(CODE, "run.go"))
        rep.report(diag)
        text = out.getvalue()
        assert "eg := errgroup.Group{}" in text
        assert "created here" in text
        assert "help" in text


class TestFinish:

    def test_summary_written_on_exit(self, diag):
        rep, _, summary = _reporter("gcc")
        with rep:
            rep.report(diag)
        assert "1 warning (1 total)" in summary.getvalue()

    def test_summary_skipped_on_exception(self):
        rep, _, summary = _reporter("gcc")
        with pytest.raises(RuntimeError):
            with rep:
                raise RuntimeError("boom")
        assert summary.getvalue() == ""

    def test_clean_summary(self):
        rep, _, summary = _reporter("text", colour=False)
        stats = rep.finish()
        assert stats.total == 0
        assert "no unwaited errgroups found" in summary.getvalue()


class TestSarif:

    def test_sarif_file(self, diag, tmp_path):
        path = tmp_path / "out.sarif"
        rep, _, _ = _reporter("gcc", sarif_path=str(path))
        rep.report(diag)
        rep.finish()
        sarif = json.loads(path.read_text())
        assert sarif["version"] == "2.1.0"
        run = sarif["runs"][0]
        assert run["tool"]["driver"]["name"] == "errgroupcheck"
        result = run["results"][0]
        assert result["level"] == "warning"
        region = result["locations"][0]["physicalLocation"]["region"]
        assert (region["startLine"], region["startColumn"]) == (4, 2)
        replacement = result["fixes"][0]["artifactChanges"][0]["replacements"][0]
        assert replacement["deletedRegion"]["byteLength"] == len("eg")
        assert replacement["insertedContent"]["text"] == "errgroup.Wait()"

    def test_sarif_path_from_environment(self, diag, tmp_path, monkeypatch):
        path = tmp_path / "env.sarif"
        monkeypatch.setenv("REPORT_GENERATE_SARIF", str(path))
        rep, _, _ = _reporter("json")
        rep.report(diag)
        rep.finish()
        assert json.loads(path.read_text())["runs"][0]["results"]

    def test_unwritable_sarif(self, diag, tmp_path):
        rep, _, _ = _reporter("gcc", sarif_path=str(tmp_path / "missing" / "out.sarif"))
        rep.report(diag)
        with pytest.raises(ReportWriteError):
            rep.finish()
