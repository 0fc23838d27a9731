"""Package logger for run output.

Every madsbridge module logs below the ``madsbridge`` logger. A single
stream handler is attached there the first time :func:`get_logger` is
called, so ``DisplayConfig`` output and orchestrator errors are visible
without any logging setup in the caller. A level already set on the
package logger is left alone.
"""

from __future__ import annotations

import logging
from typing import Final

PACKAGE_LOGGER: Final = "madsbridge"
HANDLER_NAME: Final = "madsbridge-console"

_FORMAT: Final = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
_DATEFMT: Final = "%Y-%m-%d %H:%M:%S"


def _install_handler(logger: logging.Logger) -> None:
    if any(handler.get_name() == HANDLER_NAME for handler in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    logger.addHandler(handler)
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)


def get_logger(component: str | None = None) -> logging.Logger:
    """Return ``madsbridge.<component>``, configuring the package logger once."""
    _install_handler(logging.getLogger(PACKAGE_LOGGER))
    name = f"{PACKAGE_LOGGER}.{component}" if component else PACKAGE_LOGGER
    return logging.getLogger(name)


def console_handler() -> logging.Handler | None:
    """The handler installed by :func:`get_logger`, if any."""
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    return None
