"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from otppicker.utils.env import get_bool_env


_CONFIGURED: set[str] = set()


def get_logger(name: str, level: int = logging.INFO, *, rich: bool | None = None) -> logging.Logger:
    """Configure and return a logger.

    When ``rich`` is not given, ``OTPPICKER_RICH_LOGS`` decides (default on).
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    if rich is None:
        rich = get_bool_env("OTPPICKER_RICH_LOGS", default=True)

    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            console=Console(stderr=True),
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False
    _CONFIGURED.add(name)
    return logger


def set_level(level: int | str) -> None:
    """Apply ``level`` to every logger configured through :func:`get_logger`."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    for name in _CONFIGURED:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
