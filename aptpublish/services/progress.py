"""Progress sinks for long-running storage operations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Progress(ABC):
    """Receiver of informational status messages."""

    @abstractmethod
    def printf(self, msg: str, *args: object) -> None:
        """Report ``msg`` formatted %-style with ``args``."""


class LoggingProgress(Progress):
    """Progress sink that forwards messages to the log at INFO."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def printf(self, msg: str, *args: object) -> None:
        self._log.info(msg.rstrip("\n"), *args)
