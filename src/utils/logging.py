"""Logging configuration."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Chatty third-party loggers that only matter when debugging
NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging with a Rich handler on stderr.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        verbose: Also show third-party debug output and source locations
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(numeric_level if verbose else logging.WARNING)
