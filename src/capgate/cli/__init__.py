"""CLI entry point, registers all subcommands."""

import typer

from ._common import console

app = typer.Typer(
    name="capgate",
    help="capgate - module boundary enforcement and repair for multi-app code bases",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .verify import verify as _verify  # noqa: F401, E402
from .review import review as _review  # noqa: F401, E402
from .doctor import doctor as _doctor  # noqa: F401, E402
from .graph import graph as _graph  # noqa: F401, E402
from .fix import fix_app as _fix_app  # noqa: F401, E402
