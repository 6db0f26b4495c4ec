"""Line counter and rotation trigger for the log file."""

from __future__ import annotations

from .store import FileLogStore

CAPACITY = 8192
THRESHOLD = CAPACITY + CAPACITY // 2


class RotationController:
    """Tracks how many lines the file holds and truncates it past the threshold.

    Not thread-safe on its own; the sink calls it under the file lock.
    """

    def __init__(self, capacity: int = CAPACITY) -> None:
        self.capacity = capacity
        self.threshold = capacity + capacity // 2
        self.line_count = 0

    def seed(self, existing_lines: int) -> None:
        """Start from the lines already on disk plus the session header."""

        self.line_count = existing_lines + 1

    def after_append(self, store: FileLogStore) -> bool:
        """Count one appended line; rotate when the previous count reached the threshold.

        The counter is pinned to ``capacity`` after a rotation attempt even when
        ``store.rotate`` raises, so a failing file is not re-read on every call.
        """

        observed = self.line_count
        self.line_count += 1
        if observed < self.threshold:
            return False
        try:
            store.rotate(observed, self.capacity)
        finally:
            self.line_count = self.capacity
        return True
