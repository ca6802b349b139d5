"""Graph command: capability graph export."""

import typer

from ..graph.export import write_graph
from ..verifier import Verifier
from . import app
from ._common import console, error_boundary, project_from


@app.command()
def graph(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the graph as JSON",
    ),
    mermaid: bool = typer.Option(
        False,
        "--mermaid",
        help="Embed a Mermaid flowchart in the export",
    ),
):
    """
    Export which provider wins every consumed capability.

    Writes state/graph/latest.json and latest.md.

    [bold cyan]Examples:[/bold cyan]

      capgate graph

      capgate graph --json --mermaid
    """
    project = project_from(ctx)
    with error_boundary():
        verifier = Verifier(project)
        json_path, md_path = write_graph(project, verifier.graph(), mermaid=mermaid)
        if json_output:
            typer.echo(json_path.read_text(encoding="utf-8"), nl=False)
        else:
            console.print(f"Graph written to [cyan]{project.relative(md_path)}[/cyan]")
