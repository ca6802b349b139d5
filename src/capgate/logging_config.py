"""
Logging configuration for capgate.

Log records go to stderr through a rich handler so that stdout stays free
for command output (``capgate graph --json`` is piped into other tools).
Every module logs below the ``capgate`` namespace; warnings are shown by
default, skipped files and written files only with ``--verbose``.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "capgate"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}


def level_for(verbosity: str) -> int:
    """Log level of a ``verbosity`` setting (unknown values log as ``normal``)."""
    return LEVELS.get(verbosity, LEVELS["normal"])


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    verbosity: Optional[str] = None,
) -> logging.Logger:
    """
    Install the stderr handler (and optionally a file handler) for capgate.

    Args:
        verbose: Log DEBUG records (written files, skipped sources)
        quiet: Log only errors; wins over ``verbose``
        log_file: Also append plain-text records to this file
        verbosity: Configured ``quiet|normal|verbose``, used when neither
            flag is set

    Returns:
        The ``capgate`` logger
    """
    if quiet:
        level = LEVELS["quiet"]
    elif verbose:
        level = LEVELS["verbose"]
    else:
        level = level_for(verbosity or "normal")
    debug = level <= logging.DEBUG

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=debug,
            markup=False,
            show_time=debug,
            show_path=debug,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    # Third-party loggers stay at WARNING; only capgate follows the flags
    logging.basicConfig(level=logging.WARNING, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger below the ``capgate`` namespace.

    Args:
        name: Module name (e.g., 'capgate.verifier'). Names outside the
            namespace are prefixed; None returns the ``capgate`` logger.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)

    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
