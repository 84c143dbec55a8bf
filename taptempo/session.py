"""Tap session state.

Timestamps are integer nanoseconds from `time.monotonic_ns()`.
Offsets are whole milliseconds since the first tap of the session.
"""

from __future__ import annotations

import enum
import threading
import time
from typing import List, Optional, Tuple

from taptempo.errors import InvalidInputError

NS_PER_MS = 1_000_000


class SessionState(enum.Enum):
    EMPTY = "empty"
    ACTIVE = "active"
    RESET = "reset"


class TapSession:
    """Turns a stream of tap instants into a resettable offset sequence.

    - `record(now)` starts a new session when no origin is set, otherwise
      appends `now - origin` in milliseconds.
    - `clear_origin()` ends the running session but keeps its offsets so the
      last results stay readable until the next tap.
    """

    def __init__(self) -> None:
        self._origin: Optional[int] = None
        self._offsets: List[int] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._offsets)

    @property
    def origin(self) -> Optional[int]:
        with self._lock:
            return self._origin

    @property
    def offsets(self) -> List[int]:
        with self._lock:
            return list(self._offsets)

    @property
    def just_reset(self) -> bool:
        """True once a session timed out and no new tap has arrived yet."""
        with self._lock:
            return self._origin is None and bool(self._offsets)

    @property
    def state(self) -> SessionState:
        with self._lock:
            if self._origin is not None:
                return SessionState.ACTIVE
            if self._offsets:
                return SessionState.RESET
            return SessionState.EMPTY

    def record(self, now: Optional[int] = None) -> int:
        """Record one tap.

        Input:
        - now: monotonic timestamp in nanoseconds; defaults to the current time.

        Output:
        - offset in milliseconds that was stored for this tap.

        Raises:
        - InvalidInputError if `now` is earlier than the session origin or
          than the previous tap.
        """
        with self._lock:
            # read the clock under the lock so concurrent taps stay ordered
            now = time.monotonic_ns() if now is None else int(now)
            if self._origin is None:
                self._origin = now
                self._offsets = [0]
                return 0

            if now < self._origin:
                raise InvalidInputError(
                    f"Tap at {now} ns precedes session origin {self._origin} ns"
                )
            offset = (now - self._origin) // NS_PER_MS
            if offset < self._offsets[-1]:
                raise InvalidInputError(
                    f"Tap offset {offset} ms precedes previous tap at {self._offsets[-1]} ms"
                )
            self._offsets.append(offset)
            return offset

    def clear_origin(self) -> None:
        """End the running session without discarding its offsets."""
        with self._lock:
            self._origin = None

    def snapshot(self) -> Tuple[bool, List[int]]:
        """Return `(just_reset, offsets)` read under one lock acquisition."""
        with self._lock:
            return self._origin is None and bool(self._offsets), list(self._offsets)
