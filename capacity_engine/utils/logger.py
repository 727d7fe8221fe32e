"""Package-scoped logging for engine and migration modules."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from capacity_engine.utils.config import get_settings


PACKAGE_LOGGER_NAME = "capacity_engine"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> None:
    """Attach one formatted handler to the ``capacity_engine`` logger.

    The handler is installed once, on ``stream`` or stdout; later calls only
    adjust the level. Use :func:`redirect_log_stream` to point it elsewhere
    for a bounded stretch. Records still propagate, so host applications and
    pytest's capture see them too.
    """

    global _handler
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel((level or get_settings().log_level).upper())
    if _handler is not None:
        return

    _handler = logging.StreamHandler(stream or sys.stdout)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(_handler)


@contextmanager
def redirect_log_stream(stream: TextIO) -> Iterator[None]:
    """Send package log records to ``stream`` for the duration of the block."""
    if _handler is None:
        configure_logging()
    previous = _handler.setStream(stream)
    try:
        yield
    finally:
        if previous is not None:
            _handler.setStream(previous)


def get_logger(name: str) -> logging.Logger:
    if _handler is None:
        configure_logging()
    return logging.getLogger(name)
