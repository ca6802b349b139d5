"""Review command: verify plus a human-oriented review report."""

import typer

from ..report.links import LinkBuilder
from ..report.review import ReviewWriter
from ..report.writer import ReportWriter
from ..verifier import Verifier
from . import app
from ._common import console, error_boundary, findings_exit_code, project_from
from .verify import REPORT_DIR as VERIFY_DIR

REVIEW_FILE = "reports/review/latest.md"


@app.command()
def review(ctx: typer.Context):
    """
    Write the verify report and a review grouped by rule.

    The review lists each finding with its location, hint and the fix
    command for autofixable findings.
    """
    project = project_from(ctx)
    with error_boundary():
        verifier = Verifier(project)
        findings = verifier.verify()
        ReportWriter(verifier.ids).write("verify", findings, project.state_dir / VERIFY_DIR)

        links = LinkBuilder(project.root, project.config.report_links, project.config.report_link_scheme)
        path = ReviewWriter(verifier.ids, links).write(findings, project.state_dir / REVIEW_FILE)
        console.print(f"Review written to [cyan]{project.relative(path)}[/cyan]")
    raise typer.Exit(findings_exit_code(findings))
