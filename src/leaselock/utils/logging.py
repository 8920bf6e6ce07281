"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import sys

from rich.logging import RichHandler

from .env import get_bool_env


def get_logger(name: str, level: int = logging.INFO, *, rich: bool | None = None) -> logging.Logger:
    """Configure and return a logger.

    Rich output is used unless ``rich=False`` or ``LEASELOCK_PLAIN_LOGS`` is set.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(level)

    if rich is None:
        rich = not get_bool_env("LEASELOCK_PLAIN_LOGS")

    if rich:
        handler: logging.Handler = RichHandler(
            level=logging.NOTSET,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter = logging.Formatter(
        "%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def set_level(level: int) -> None:
    """Change the level of every leaselock logger created so far."""
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("leaselock") and isinstance(logger, logging.Logger):
            logger.setLevel(level)
