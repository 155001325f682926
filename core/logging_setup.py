"""Centralized logging configuration for the PlainSpend engine packages.

Library modules never attach handlers; they call ``logging.getLogger(__name__)``
and rely on :func:`configure_logging` being invoked once by the host
application. Until then a ``NullHandler`` keeps the packages silent.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

from config import get_settings

_PACKAGE_LOGGERS = ("analytics", "core", "config")
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False

for _name in _PACKAGE_LOGGERS:
    logging.getLogger(_name).addHandler(logging.NullHandler())


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = get_settings().log_level
    level = str(level).strip().upper()
    if level.isdigit():
        return int(level)
    numeric = getattr(logging, level, None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach a single ``StreamHandler`` to each package logger, exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int`` or level name. Defaults to the ``log_level``
        setting (``PLAINSPEND_LOG_LEVEL``).
    fmt:
        Optional format string.
    stream:
        Output stream for the handler.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    for name in _PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        for existing in list(logger.handlers):
            if isinstance(existing, logging.NullHandler):
                logger.removeHandler(existing)
        logger.setLevel(resolved)
        logger.addHandler(handler)
        logger.propagate = False

    _CONFIGURED = True
