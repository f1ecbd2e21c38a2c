# termchat/scrollback.py

"""
Bounded history of rendered display lines, shared by the receive thread
and the renderer.
"""

import threading
from collections import deque

SCROLLBACK_CAPACITY = 500
MAX_LINE = 1200


class ScrollbackBuffer:
    """ Thread-safe FIFO ring of display lines.

    Appending at capacity evicts the oldest line.
    """

    def __init__(self, capacity: int = SCROLLBACK_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._lines = deque(maxlen=capacity)
        self._total = 0 # Lines ever appended, including evicted ones
        self._lock = threading.Lock()

    def append(self, line: str):
        line = line[:MAX_LINE]
        with self._lock:
            self._lines.append(line)
            self._total += 1

    def snapshot(self, rows: int, scroll_offset: int = 0) -> list[str]:
        """ Returns up to rows lines ending scroll_offset lines before the newest."""
        with self._lock:
            count = len(self._lines)
            end = min(max(count - scroll_offset, 0), count)
            start = max(end - rows, 0)
            return [self._lines[i] for i in range(start, end)]

    def lines_since(self, mark: int) -> tuple[list[str], int]:
        """ Returns the lines appended after mark and the new mark."""
        with self._lock:
            first_kept = self._total - len(self._lines)
            start = max(mark, first_kept) - first_kept
            lines = [self._lines[i] for i in range(start, len(self._lines))]
            return lines, self._total

    @property
    def total_appended(self) -> int:
        with self._lock:
            return self._total

    def __len__(self):
        with self._lock:
            return len(self._lines)
