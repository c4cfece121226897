"""Logging setup for command line entry points."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a stderr handler on the root logger.

    Library modules only create loggers; handlers are attached here so that
    embedding applications keep control of their own logging setup.
    """

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    # urllib3 logs every request at DEBUG, which drowns per-object messages
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.INFO))
