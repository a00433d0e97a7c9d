"""Utility functions for CLI operations."""

import sys
import threading
from typing import Callable, TypeVar

from cli.constants import GREEN, PROGRESS_REFRESH_SECONDS, RESET
from storage_client.progress import ProgressTracker

T = TypeVar('T')


class ProgressDisplay:
    """Prints a ProgressTracker's percentage on one stdout line until finished."""

    def __init__(self, label: str, tracker: ProgressTracker, stream=None):
        """
        Initialize the progress display.

        Args:
            label: Text shown before the percentage (e.g. "Uploading cat.jpg")
            tracker: Tracker filled in by the transfer
            stream: Output stream, stdout by default
        """
        self.label = label
        self.tracker = tracker
        self.stream = stream or sys.stdout
        self._last_shown = -1.0

    def refresh(self) -> None:
        value = self.tracker.value
        if value == self._last_shown:
            return
        self._last_shown = value
        self.stream.write(f"\r{self.label}: {GREEN}{value:.0f}%{RESET}")
        self.stream.flush()

    def finish(self) -> None:
        """Show the final value and end the line."""
        self.refresh()
        self.stream.write('\n')
        self.stream.flush()


def run_with_progress(label: str, tracker: ProgressTracker, action: Callable[[], T],
                      interval: float = PROGRESS_REFRESH_SECONDS) -> T:
    """
    Run action in a worker thread while the calling thread shows progress.

    Args:
        label: Progress line label
        tracker: Tracker the action updates
        action: Transfer to run; its return value is passed through
        interval: Seconds between display refreshes

    Returns:
        Whatever action returned
    """
    outcome: dict = {}

    def worker() -> None:
        try:
            outcome['value'] = action()
        except Exception as e:
            outcome['error'] = e

    display = ProgressDisplay(label, tracker)
    thread = threading.Thread(target=worker, daemon=True, name="CliTransfer")
    thread.start()
    while thread.is_alive():
        display.refresh()
        thread.join(timeout=interval)
    display.finish()

    if 'error' in outcome:
        raise outcome['error']
    return outcome['value']


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
