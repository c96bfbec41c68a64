"""
Logging for Financial Ingest.

All loggers live under the ``financial_ingest`` namespace; modules obtain
theirs with ``get_logger("<module>")``.  ``DataIngestionService`` calls
``configure_logging`` on construction.  The first call installs the
handlers; later calls only change the level, so several services in one
process never duplicate output.  Records do not propagate to the
root logger while the handlers are installed.
"""

from __future__ import annotations

import logging
import sys
from typing import IO, List, Optional

ROOT_LOGGER_NAME = "financial_ingest"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-34s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handlers: List[logging.Handler] = []


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure the ``financial_ingest`` logger and return it.

    Parameters
    ----------
    level:
        Minimum severity to emit.
    log_file:
        Also write to this file (first call only).
    stream:
        Console stream, ``sys.stdout`` by default (first call only).
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    if _handlers:
        for handler in _handlers:
            handler.setLevel(level)
        return root

    root.propagate = False
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(stream or sys.stdout)
    _handlers.append(console)

    if log_file:
        _handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in _handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return root


def reset_logging() -> None:
    """Detach and close the handlers installed by ``configure_logging``."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    while _handlers:
        handler = _handlers.pop()
        root.removeHandler(handler)
        handler.close()
    root.propagate = True


def get_logger(name: str) -> logging.Logger:
    """Child logger ``financial_ingest.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
