"""Transfer progress shared between one writer thread and any reader."""

import threading


class ProgressTracker:
    """
    Percentage of a transfer in [0, 100].

    Written by exactly one thread (the upload writer or the download
    poller), read from any thread. Values never decrease within one
    transfer; 100 is only published by complete().
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self._lock = threading.Lock()
        self._value = 0.0

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    def update(self, done: int, total: int) -> None:
        """
        Publish done * 100 // total, capped below 100.

        Args:
            done: Bytes transferred so far
            total: Total bytes expected
        """
        if not self.enabled or total <= 0:
            return
        percent = float(min(done * 100 // total, 99))
        with self._lock:
            if percent > self._value:
                self._value = percent

    def complete(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            self._value = 100.0

    def reset(self) -> None:
        with self._lock:
            self._value = 0.0
