"""Tests for the review report and location links."""

from capgate.report.identity import FindingIdGenerator
from capgate.report.links import LinkBuilder
from capgate.report.models import Finding, FindingLocation, Severity
from capgate.report.review import ReviewWriter

CROSSING = Finding(
    rule_key="CAPGATE.APP.CROSSING",
    severity=Severity.BLOCKER,
    message="App billing references a.B.",
    location=FindingLocation("src/x.py", 2, "a.B"),
    details={"primary": "a.B|use-import"},
    hint="Consume a capability.",
    autofix_available=True,
    autofix_fixer="crossing",
)


class TestReviewWriter:
    """Test ReviewWriter.render."""

    def test_sections(self, tmp_path):
        ids = FindingIdGenerator()
        warning = Finding("CAPGATE.CAPABILITY.ID.INVALID", Severity.WARNING, "Bad id.")
        text = ReviewWriter(ids, LinkBuilder(tmp_path)).render([CROSSING, warning])
        finding_id = ids.generate(CROSSING)
        assert "- Blockers: 1" in text
        assert "- Warnings: 1" in text
        assert "### CAPGATE.APP.CROSSING" in text
        assert "  File: src/x.py:2" in text
        assert "  Symbol: a.B" in text
        assert "  Hint: Consume a capability." in text
        assert f"  Autofix: capgate fix crossing --finding={finding_id}" in text
        # a finding without a hint repeats its message
        assert "  Hint: Bad id." in text

    def test_empty(self, tmp_path):
        text = ReviewWriter(FindingIdGenerator(), LinkBuilder(tmp_path)).render([])
        assert "No findings." in text

    def test_write(self, tmp_path):
        path = ReviewWriter(FindingIdGenerator(), LinkBuilder(tmp_path)).write([CROSSING], tmp_path / "r" / "latest.md")
        assert path.read_text().startswith("# capgate Review Report")


class TestLinkBuilder:
    """Test LinkBuilder.format."""

    def test_disabled(self, tmp_path):
        assert LinkBuilder(tmp_path).format("src/x.py", 3) == "src/x.py:3"

    def test_file_scheme(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "x.py").write_text("")
        text = LinkBuilder(tmp_path, enabled=True, scheme="file").format("src/x.py", 3)
        assert text == f"[src/x.py:3]({(tmp_path / 'src' / 'x.py').resolve().as_uri()})"

    def test_vscode_scheme(self, tmp_path):
        (tmp_path / "x.py").write_text("")
        text = LinkBuilder(tmp_path, enabled=True, scheme="vscode").format("x.py", 7)
        assert text.startswith("[x.py:7](vscode://file/")
        assert text.endswith("x.py:7)")

    def test_missing_file_is_plain(self, tmp_path):
        assert LinkBuilder(tmp_path, enabled=True, scheme="file").format("nope.py") == "nope.py"

    def test_no_path(self, tmp_path):
        assert LinkBuilder(tmp_path).format(None) == ""
