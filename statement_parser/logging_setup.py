"""
Logging bootstrap for the ``statement_parser`` namespace.

Modules log through ``get_logger("<module>")``.  Every ``StatementParser``
calls ``configure_logging`` with its own ``log_level``: the first call
installs the handlers, later calls only move the level, so a process that
builds several parsers never ends up with duplicated output.
"""

from __future__ import annotations

import logging
import sys
from typing import List, Optional

ROOT_LOGGER_NAME = "statement_parser"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-34s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks the handlers installed here, as opposed to ones added by the host app.
_OWNED_ATTR = "_statement_parser_owned"


def _owned_handlers(root: logging.Logger) -> List[logging.Handler]:
    return [h for h in root.handlers if getattr(h, _OWNED_ATTR, False)]


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """Attach console (and optional file) output to the package logger.

    Parameters
    ----------
    level:
        Minimum severity to emit.  Applied on every call.
    log_file:
        If provided on the first call, a ``FileHandler`` is added alongside
        the console handler.

    Returns the ``statement_parser`` logger.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False

    owned = _owned_handlers(root)
    if owned:
        for handler in owned:
            handler.setLevel(level)
        return root

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _OWNED_ATTR, True)
        root.addHandler(handler)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``statement_parser.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
