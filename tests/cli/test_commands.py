"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from capgate import __version__
from capgate.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


def _invoke(builder, *args):
    return runner.invoke(app, ["-C", str(builder.root), *args])


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestVerify:
    """Test the verify command."""

    def test_clean_project(self, builder):
        builder.app("billing")
        result = _invoke(builder, "verify")
        assert result.exit_code == 0
        assert "No findings." in result.output
        report = json.loads(builder.read("state/reports/verify/latest.json"))
        assert report["header"]["result"] == "ok"
        assert builder.exists("state/reports/verify/latest.md")

    def test_blockers_exit_3(self, crossing_project):
        result = _invoke(crossing_project, "verify")
        assert result.exit_code == 3
        report = json.loads(crossing_project.read("state/reports/verify/latest.json"))
        assert report["header"]["summary"]["blockers"] == 2

    def test_invalid_config_exit_2(self, builder):
        builder.write("capgate.toml", 'verbosity = "loud"\n')
        result = _invoke(builder, "verify")
        assert result.exit_code == 2


class TestReview:
    """Test the review command."""

    def test_review(self, crossing_project):
        result = _invoke(crossing_project, "review")
        assert result.exit_code == 3
        text = crossing_project.read("state/reports/review/latest.md")
        assert "### CAPGATE.APP.CROSSING" in text
        assert "capgate fix crossing --finding=F-" in text
        assert crossing_project.exists("state/reports/verify/latest.json")


class TestDoctor:
    """Test the doctor command."""

    def test_safe_mode(self, builder):
        builder.app("billing", consumes=("mail.sender",))
        result = _invoke(builder, "doctor")
        assert result.exit_code == 3
        report = json.loads(builder.read("state/reports/doctor/latest.json"))
        assert report["apps"]["billing"]["status"] == "SAFE_MODE"
        assert "SAFE_MODE" in result.output

    def test_ok(self, builder):
        builder.app("billing")
        result = _invoke(builder, "doctor")
        assert result.exit_code == 0
        report = json.loads(builder.read("state/reports/doctor/latest.json"))
        assert report["apps"]["billing"]["status"] == "OK"


class TestGraph:
    """Test the graph command."""

    def test_json(self, builder):
        builder.app("billing", consumes=({"capabilityId": "mail.sender", "required": False},))
        result = _invoke(builder, "graph", "--json")
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["apps"]["billing"]["consumes"][0]["capabilityId"] == "mail.sender"
        assert builder.exists("state/graph/latest.md")

    def test_mermaid(self, builder):
        builder.app("billing")
        result = _invoke(builder, "graph", "--mermaid")
        assert result.exit_code == 0
        assert "```mermaid" in builder.read("state/graph/latest.md")


class TestFix:
    """Test the fix commands."""

    def test_mode_is_required(self, crossing_project):
        result = _invoke(crossing_project, "fix")
        assert result.exit_code == 2

    def test_both_modes_rejected(self, crossing_project):
        result = _invoke(crossing_project, "fix", "crossing", "--dry-run", "--apply")
        assert result.exit_code == 2

    def test_conflicting_selection(self, crossing_project):
        result = _invoke(crossing_project, "fix", "--dry-run", "--all", "--symbol", "a.B")
        assert result.exit_code == 2

    def test_dry_run(self, crossing_project):
        result = _invoke(crossing_project, "fix", "--dry-run")
        assert result.exit_code == 0
        latest = json.loads(crossing_project.read("state/fix/latest.json"))
        assert latest["mode"] == "dry-run"
        assert latest["fixer"] == "crossing"

    def test_apply_then_verify(self, crossing_project):
        result = _invoke(crossing_project, "fix", "crossing", "--apply")
        assert result.exit_code == 0
        assert crossing_project.exists("src/app/components/bridge_inventory/.capgate-bridge")
        assert _invoke(crossing_project, "verify").exit_code == 0

    def test_unknown_finding(self, crossing_project):
        result = _invoke(crossing_project, "fix", "crossing", "--dry-run", "--finding", "F-00000000")
        assert result.exit_code == 2

    def test_nothing_to_fix(self, builder):
        builder.app("billing")
        result = _invoke(builder, "fix", "--apply")
        assert result.exit_code == 0
        assert "No autofixable findings matched." in result.output
