"""Bounded, drop-on-full notification channel for new-device alerts."""
import queue
import threading
from typing import Iterator, Optional

from config import NETWORK, get_logger

logger = get_logger(__name__)


class AlertChannel:
    """Producers never block; when the queue is full the new alert is dropped.

    The consumer side either polls with `get()` or iterates, which blocks
    until the next alert arrives.

    Example:
        >>> alerts = AlertChannel(maxsize=10)
        >>> alerts.publish("NEW DEVICE: 192.168.1.42")
        True
        >>> alerts.get(timeout=0)
        'NEW DEVICE: 192.168.1.42'
    """

    def __init__(self, maxsize: int = NETWORK.ALERT_QUEUE_SIZE):
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self.dropped = 0
        self._dropped_lock = threading.Lock()

    def publish(self, message: str) -> bool:
        """Enqueue without blocking; returns False if the alert was dropped."""
        try:
            self._queue.put_nowait(message)
            return True
        except queue.Full:
            with self._dropped_lock:
                self.dropped += 1
            logger.debug(f"Alert queue full, dropped: {message}")
            return False

    def get(self, timeout: Optional[float] = None) -> Optional[str]:
        """Next alert, or None if none arrives within `timeout` seconds."""
        try:
            if timeout == 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list:
        """Take every pending alert without blocking."""
        messages = []
        while True:
            message = self.get(timeout=0)
            if message is None:
                return messages
            messages.append(message)

    def __iter__(self) -> Iterator[str]:
        while True:
            yield self._queue.get()

    def __len__(self) -> int:
        return self._queue.qsize()
