"""Logging setup for the CLI and long-running processes."""

import logging

from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    """Route ``nav_voice.*`` loggers to a rich console handler."""
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s %(message)s"))

    logger = logging.getLogger("nav_voice")
    logger.handlers[:] = [handler]
    logger.setLevel(level.upper())
    logger.propagate = False
