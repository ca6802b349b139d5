"""Verify command: every structural and boundary check."""

import typer

from ..report.writer import ReportWriter
from ..verifier import Verifier
from . import app
from ._common import console, error_boundary, findings_exit_code, print_findings, project_from

REPORT_DIR = "reports/verify"


@app.command()
def verify(ctx: typer.Context):
    """
    Check registries, manifests and sources for boundary violations.

    Writes state/reports/verify/latest.json and latest.md. Exits with 3
    when any BLOCKER is found.

    [bold cyan]Examples:[/bold cyan]

      capgate verify

      capgate -C /path/to/project verify
    """
    project = project_from(ctx)
    with error_boundary():
        verifier = Verifier(project)
        findings = verifier.verify()
        json_path, _ = ReportWriter(verifier.ids).write("verify", findings, project.state_dir / REPORT_DIR)
        print_findings(findings, verifier.ids)
        console.print(f"[dim]Report: {project.relative(json_path)}[/dim]")
    raise typer.Exit(findings_exit_code(findings))
