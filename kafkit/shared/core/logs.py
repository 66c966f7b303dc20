"""Logging setup for kafkit.

Modules log through ``logging.getLogger(__name__)``; only entry points call
:func:`configure_logging`, which routes the ``kafkit`` logger tree to a rich
console handler on stderr.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "kafkit"
DEFAULT_LEVEL = "WARNING"

_handler: RichHandler | None = None


def _coerce_level(level: int | str | None) -> int:
    if level is None:
        return logging.getLevelName(DEFAULT_LEVEL)
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.getLevelName(DEFAULT_LEVEL)


def configure_logging(level: int | str | None = None, *, console: Console | None = None) -> logging.Logger:
    """Install (or reconfigure) the rich handler on the ``kafkit`` logger.

    Calling this repeatedly only adjusts the level; the handler is installed once.
    """
    global _handler
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    resolved = _coerce_level(level)
    if _handler is None:
        _handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        _handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(_handler)
        logger.propagate = False
    _handler.setLevel(resolved)
    logger.setLevel(resolved)
    return logger


def reset_logging() -> None:
    """Remove the installed handler (useful for testing)."""
    global _handler
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
