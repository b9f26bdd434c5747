"""Structured logging capability injected into the matching services.

Services never reach for a module-level logger. They receive an object
implementing :class:`StructuredLogger` and call
``logger.log(level, message, **fields)``.
"""

from __future__ import annotations

import logging
from typing import Protocol

DEFAULT_LOGGER_NAME = "ngo_matching"


class StructuredLogger(Protocol):
    """Anything that can record a message with structured fields."""

    def log(self, level: int, message: str, **fields) -> None:
        """Record ``message`` at ``level`` with key/value ``fields``."""


class StdlibStructuredLogger:
    """Adapter rendering structured fields onto a ``logging.Logger``.

    Fields are appended to the message as ``key=value`` pairs in the order
    given, and also attached to the record under ``fields`` so handlers can
    pick them up unformatted.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def log(self, level: int, message: str, **fields) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if fields:
            rendered = " ".join(f"{k}={_render(v)}" for k, v in fields.items())
            message = f"{message} | {rendered}"
        self._logger.log(level, message, extra={"fields": fields})


class NullLogger:
    """Discards everything. Handy in tests and benchmarks."""

    def log(self, level: int, message: str, **fields) -> None:
        return None


def configure_root_logger(level: int = logging.INFO) -> None:
    """Configure the root logger with a consistent format."""
    if logging.getLogger().handlers:
        return
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler])


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> StdlibStructuredLogger:
    """Build a structured adapter over the named stdlib logger.

    The root logger is configured on first use unless the application
    already installed handlers.
    """
    configure_root_logger()
    return StdlibStructuredLogger(logging.getLogger(name))


def _render(value) -> str:
    if isinstance(value, float):
        return f"{value:.3f}"
    return str(value)
