"""Doctor command: per-app capability health."""

import typer
from rich.table import Table

from ..graph.doctor import Doctor, render_apps_markdown
from ..graph.resolver import STATUS_DEGRADED, STATUS_OK
from ..report.writer import ReportWriter
from ..verifier import Verifier
from . import app
from ._common import console, error_boundary, findings_exit_code, project_from

REPORT_DIR = "reports/doctor"

_STATUS_COLORS = {STATUS_OK: "green", STATUS_DEGRADED: "yellow"}


@app.command()
def doctor(ctx: typer.Context):
    """
    Resolve every consumed capability and report app status.

    An app is OK when every capability it consumes has a real provider,
    DEGRADED when one resolves only to a no-op, and SAFE_MODE when a
    required capability has no provider at all.
    """
    project = project_from(ctx)
    with error_boundary():
        verifier = Verifier(project)
        result = Doctor(project, verifier.apps, verifier.providers).run()
        ReportWriter(verifier.ids).write(
            "doctor",
            result.findings,
            project.state_dir / REPORT_DIR,
            extra={"apps": result.apps},
            appendix=render_apps_markdown(result),
        )

        table = Table(show_header=True, header_style="bold")
        table.add_column("App")
        table.add_column("Status")
        table.add_column("Missing required")
        table.add_column("Degraded")
        for app_id in sorted(result.apps):
            entry = result.apps[app_id]
            color = _STATUS_COLORS.get(entry["status"], "red")
            table.add_row(
                app_id,
                f"[{color}]{entry['status']}[/{color}]",
                ", ".join(entry["missingRequired"]) or "-",
                ", ".join(entry["degraded"]) or "-",
            )
        console.print(table)
    raise typer.Exit(findings_exit_code(result.findings))
