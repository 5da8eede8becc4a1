"""Logging setup shared by the CLI and the HTTP server.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by whichever entry point runs first.
"""
from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s %(message)s"

# SQL statements are logged through FG_DB_ECHO, not the root level
_QUIET_LOGGERS = ("sqlalchemy.engine",)


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = level.strip().upper() or "INFO"
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("form_graph").setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
