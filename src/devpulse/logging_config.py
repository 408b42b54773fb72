"""
Logging configuration for devpulse.

Log records go through a rich handler on stderr so that metric output on
stdout stays machine-readable. Git and tracker collection log skipped
branches, blame failures and page progress under the ``devpulse`` logger.
"""

import logging
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from .config import MetricsConfig

ROOT_LOGGER = "devpulse"

VERBOSITY_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _verbosity(verbose: bool, quiet: bool) -> str:
    if quiet:
        return "quiet"
    return "verbose" if verbose else "normal"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Route devpulse logging to a rich stderr handler and an optional file.

    Args:
        verbose: Log at DEBUG, with source paths and traceback locals
        quiet: Log only errors; wins over ``verbose``
        log_file: Optional path that receives a plain-text copy of every record

    Returns:
        The ``devpulse`` package logger
    """
    verbosity = _verbosity(verbose, quiet)
    level = VERBOSITY_LEVELS[verbosity]
    detailed = verbosity == "verbose"

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=detailed,
            markup=False,
            show_path=detailed,
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def configure_logging(config: "MetricsConfig", log_file: Optional[str] = None) -> logging.Logger:
    """Apply ``config.verbosity`` via :func:`setup_logging`."""
    return setup_logging(
        verbose=config.verbosity == "verbose",
        quiet=config.verbosity == "quiet",
        log_file=log_file,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger under the devpulse namespace.

    Args:
        name: Module name such as ``devpulse.temporal.reconcile``; other
              names are prefixed with ``devpulse.``

    Returns:
        Logger instance
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
