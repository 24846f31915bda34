"""User-facing status channel.

The scan pipeline posts short messages ("Scanned <title>", "Scanning
Completed", ...) to a ``StatusSink``. Delivery is fire-and-forget: a sink
failure is logged and never interrupts the pipeline.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import List

from .models import StatusMessage

logger = logging.getLogger(__name__)


class StatusSink(ABC):
    """Receiver of status messages (UI channel, IPC bridge, ...)."""

    @abstractmethod
    def post(self, message: StatusMessage) -> None:
        ...


class LoggingStatusSink(StatusSink):
    """Sink that writes status messages to the log."""

    def __init__(self, logger_name: str = "melodex.status"):
        self._logger = logging.getLogger(logger_name)

    def post(self, message: StatusMessage) -> None:
        level = logging.ERROR if message.severity == "error" else logging.INFO
        self._logger.log(level, f"{message.message} {{'id': {message.id!r}}}")


class RecordingStatusSink(StatusSink):
    """Sink that keeps every message in memory, e.g. for a status panel."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: List[StatusMessage] = []

    def post(self, message: StatusMessage) -> None:
        with self._lock:
            self._messages.append(message)

    @property
    def messages(self) -> List[StatusMessage]:
        with self._lock:
            return list(self._messages)

    def with_id(self, message_id: str) -> List[StatusMessage]:
        return [m for m in self.messages if m.id == message_id]


def notify(sink: StatusSink, message_id: str, message: str, severity: str = "info") -> None:
    """Post a message without letting sink errors escape."""
    try:
        sink.post(StatusMessage(id=message_id, message=message, severity=severity))
    except Exception as e:
        logger.warning(f"Status sink failed: {{'id': {message_id!r}, 'error': {str(e)!r}}}")
