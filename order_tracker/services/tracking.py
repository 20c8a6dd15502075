"""
Tracking ID generation.

IDs look like ``TID17295012345671234``: a 13-digit millisecond clock
followed by a 4-digit random suffix. The clock part never repeats inside
one process, so two orders created in the same millisecond still get
distinct IDs; the suffix keeps separate processes apart.
"""

import secrets
import threading
import time
from typing import Callable, Optional

PREFIX = "TID"


class TrackingIdGenerator:
    """Thread-safe source of unique tracking IDs."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last_ms = 0
        self._lock = threading.Lock()

    def _next_millis(self) -> int:
        with self._lock:
            now_ms = int(self._clock() * 1000)
            # Never hand out the same (or an older) millisecond twice.
            self._last_ms = max(now_ms, self._last_ms + 1)
            return self._last_ms

    def __call__(self) -> str:
        millis = self._next_millis()
        suffix = secrets.randbelow(9000) + 1000
        return f"{PREFIX}{millis}{suffix}"


generate_tracking_id = TrackingIdGenerator()
