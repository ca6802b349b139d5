"""Fix commands: plan or apply autofixes."""

from typing import Optional

import typer
from rich.table import Table

from ..fix import CrossingFixer, FixOutcome, FixSelection, exit_code, resolve_mode, run_fix
from . import app
from ._common import console, error_boundary, project_from

fix_app = typer.Typer(
    help="Plan (--dry-run) or apply (--apply) autofixes for findings.",
    rich_markup_mode="rich",
)
app.add_typer(fix_app, name="fix")


def _print_outcome(fixer: str, outcome: FixOutcome) -> None:
    color = "green" if outcome.result == "ok" else "red"
    console.print(
        f"[bold]{fixer}[/bold] run [cyan]{outcome.run_id}[/cyan]: [{color}]{outcome.result}[/{color}]"
    )
    if outcome.items:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Finding", style="dim", no_wrap=True)
        table.add_column("State")
        table.add_column("Detail")
        for item in outcome.items:
            if item.fixable:
                table.add_row(item.finding_id, "[green]fixable[/green]", item.summary or "")
            else:
                table.add_row(item.finding_id, "[red]blocked[/red]", item.reason or "")
        console.print(table)
    if outcome.changed_files:
        console.print(f"Changed files: [bold]{len(outcome.changed_files)}[/bold]")
        for path in outcome.changed_files:
            console.print(f"  {path}")


def _inputs(
    dry_run: bool, apply: bool, all_: bool, file: Optional[str], symbol: Optional[str], finding: Optional[str]
) -> tuple[str, FixSelection]:
    return resolve_mode(dry_run, apply), FixSelection.from_options(all_, file, symbol, finding)


@fix_app.callback(invoke_without_command=True)
def fix(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Write the plan only"),
    apply: bool = typer.Option(False, "--apply", help="Apply the plan"),
    all_: bool = typer.Option(False, "--all", help="Select every autofixable finding (default)"),
    file: Optional[str] = typer.Option(None, "--file", help="Select findings in one project-relative file"),
    symbol: Optional[str] = typer.Option(None, "--symbol", help="Select findings about one dotted symbol"),
    finding: Optional[str] = typer.Option(None, "--finding", help="Select exactly one finding by id"),
    prune_unresolvable: bool = typer.Option(
        False,
        "--prune-unresolvable-imports",
        help="Also drop imports of rewritten files that no longer resolve",
    ),
):
    """
    Dispatch selected autofixable findings to their fixers.

    [bold cyan]Examples:[/bold cyan]

      capgate fix --dry-run

      capgate fix --apply --file src/app/apps/billing/checkout/service.py

      capgate fix crossing --apply --finding F-0A1B2C3D
    """
    if ctx.invoked_subcommand is not None:
        return

    project = project_from(ctx)
    with error_boundary():
        mode, selection = _inputs(dry_run, apply, all_, file, symbol, finding)
        outcomes = run_fix(project, mode, selection, prune_unresolvable)
        if not outcomes:
            console.print("No autofixable findings matched.")
        for outcome in outcomes:
            _print_outcome(CrossingFixer.name, outcome)
    raise typer.Exit(exit_code(outcomes))


@fix_app.command()
def crossing(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Write the plan only"),
    apply: bool = typer.Option(False, "--apply", help="Apply the plan"),
    all_: bool = typer.Option(False, "--all", help="Select every crossing (default)"),
    file: Optional[str] = typer.Option(None, "--file", help="Select crossings in one project-relative file"),
    symbol: Optional[str] = typer.Option(None, "--symbol", help="Select crossings of one dotted symbol"),
    finding: Optional[str] = typer.Option(None, "--finding", help="Select exactly one crossing by id"),
    prune_unresolvable: bool = typer.Option(
        False,
        "--prune-unresolvable-imports",
        help="Also drop imports of rewritten files that no longer resolve",
    ),
):
    """
    Replace direct cross-app references with generated bridges.

    Each crossing gets a contract in a bridge component, a no-op fallback,
    an adapter in the provider app and manifest entries on both sides.
    """
    project = project_from(ctx)
    with error_boundary():
        mode, selection = _inputs(dry_run, apply, all_, file, symbol, finding)
        outcome = CrossingFixer(project, prune_unresolvable).run(mode, selection)
        _print_outcome(CrossingFixer.name, outcome)
    raise typer.Exit(int(outcome.exit_code))
