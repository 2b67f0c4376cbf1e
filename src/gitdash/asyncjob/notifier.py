"""Notifier - completion channel from workers to the control loop

Many workers send, one control loop receives. Sending never blocks; once the
notifier is closed, sends are dropped and the worker carries on.
"""

import queue
import threading
from dataclasses import dataclass
from enum import Enum

from ..config import METRICS_ENABLED
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)


class JobKind(Enum):
    """Category of asynchronous query, one job slot each"""

    STATUS = "status"
    COMMIT_FILES = "commit_files"
    DIFF = "diff"


@dataclass(frozen=True)
class JobNotification:
    """A job of `kind` finished; `error` is set when it failed"""

    kind: JobKind
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Notifier:
    """Multi-producer / single-consumer notification channel"""

    def __init__(self):
        self._queue: queue.SimpleQueue[JobNotification] = queue.SimpleQueue()
        self._closed = threading.Event()

    def send(self, notification: JobNotification) -> bool:
        """Queue a notification

        Returns:
            False when the notifier is closed and the event was discarded
        """
        if self._closed.is_set():
            logger.debug(f"[Notifier] closed, dropping {notification.kind.value}")
            if METRICS_ENABLED:
                metrics.inc("notifier.dropped", {"kind": notification.kind.value})
            return False
        self._queue.put_nowait(notification)
        return True

    def receive(self, timeout: float | None = None) -> JobNotification | None:
        """Wait for the next notification

        Args:
            timeout: seconds to wait; None blocks until one arrives

        Returns:
            the notification, or None on timeout
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[JobNotification]:
        """Take every queued notification without blocking"""
        items = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items

    def close(self) -> None:
        """Stop accepting notifications"""
        self._closed.set()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()
