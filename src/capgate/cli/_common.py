"""Shared CLI helpers."""

from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console
from rich.table import Table

from ..exceptions import CapgateError, ExitCode
from ..logging_config import get_logger
from ..project import Project
from ..report.identity import FindingIdGenerator
from ..report.models import Finding, Severity, count_severities

console = Console()
logger = get_logger(__name__)

MAX_TABLE_ROWS = 50


def project_from(ctx: typer.Context) -> Project:
    """Project resolved by the main callback."""
    return ctx.obj["project"]


@contextmanager
def error_boundary() -> Iterator[None]:
    """Map every error of a command onto its exit code."""
    try:
        yield

    except typer.Exit:
        raise

    except CapgateError as e:
        logger.debug(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(int(e.exit_code))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(int(ExitCode.INTERNAL_ERROR))


def findings_exit_code(findings: list[Finding]) -> int:
    blockers, _ = count_severities(findings)
    return int(ExitCode.PROJECT_STATE_ERROR if blockers else ExitCode.SUCCESS)


def print_findings(findings: list[Finding], ids: FindingIdGenerator) -> None:
    blockers, warnings = count_severities(findings)
    if not findings:
        console.print("[green]No findings.[/green]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Id", style="dim", no_wrap=True)
    table.add_column("Severity")
    table.add_column("Rule")
    table.add_column("Message")
    table.add_column("Location", style="cyan")

    for finding in findings[:MAX_TABLE_ROWS]:
        location = ids.normalize_location(finding.location)
        where = location["file"] or ""
        if location["line"]:
            where += f":{location['line']}"
        color = "red" if finding.severity == Severity.BLOCKER else "yellow"
        table.add_row(
            ids.generate(finding),
            f"[{color}]{finding.severity}[/{color}]",
            finding.rule_key,
            finding.message,
            where,
        )
    console.print(table)
    if len(findings) > MAX_TABLE_ROWS:
        console.print(f"[dim]... and {len(findings) - MAX_TABLE_ROWS} more (see the report)[/dim]")
    console.print(f"[bold]{blockers}[/bold] blockers, [bold]{warnings}[/bold] warnings")
