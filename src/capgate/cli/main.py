"""Global options shared by every subcommand."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..config import load_config
from ..logging_config import setup_logging
from ..project import Project
from . import app
from ._common import console, error_boundary


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Project root (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also append log records to this file",
        dir_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Enforce module boundaries between apps and repair crossings.

    [bold cyan]Examples:[/bold cyan]

      capgate verify

      capgate doctor

      capgate graph --mermaid

      capgate fix --dry-run --all

      capgate -C /path/to/project fix crossing --apply --finding F-0A1B2C3D
    """
    if version:
        console.print(f"[bold cyan]capgate[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    log_path = str(log_file) if log_file else None
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_path)
    root = (path or Path.cwd()).resolve()

    with error_boundary():
        settings = load_config(project_root=root, config_file=config, verbose=verbose, quiet=quiet)
    # Config files and CAPGATE_VERBOSITY may change the level
    setup_logging(log_file=log_path, verbosity=settings.verbosity)

    ctx.ensure_object(dict)
    ctx.obj["project"] = Project.at(root, settings)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
