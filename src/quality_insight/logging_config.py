"""
Logging for Quality Insight.

Library modules only ask for loggers; the CLI decides where records go.
Records always go to stderr so ``--json`` reports stay parseable on stdout.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "quality_insight"

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}


def setup_logging(verbosity: str = "normal") -> logging.Logger:
    """
    Route quality_insight records to a rich handler on stderr.

    Safe to call again once the configuration file has been read; the
    previous handler is replaced.

    Args:
        verbosity: One of ``quiet``, ``normal`` or ``verbose``

    Returns:
        The quality_insight logger
    """
    level = LEVELS.get(verbosity, logging.WARNING)
    verbose = level == logging.DEBUG

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=verbose,
        show_path=verbose,
    )
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, namespaced under quality_insight."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
