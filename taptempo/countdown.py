"""Restartable inactivity countdown that ends a tap session."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from taptempo.errors import InvalidInputError

DEFAULT_RESET_SECONDS = 2.0
MIN_RESET_SECONDS = 1.0
MAX_RESET_SECONDS = 9.0


def validate_reset_seconds(
    value: float,
    minimum: float = MIN_RESET_SECONDS,
    maximum: float = MAX_RESET_SECONDS,
) -> float:
    """Validate a reset interval.

    Raises:
    - InvalidInputError if value is outside [minimum, maximum].
    """
    seconds = float(value)
    if not minimum <= seconds <= maximum:
        raise InvalidInputError(
            f"reset_seconds must be between {minimum:g} and {maximum:g}, got {value}"
        )
    return seconds


class ResetCountdown:
    """Single pending timer on the running asyncio loop.

    Re-arming cancels the previous timer first, so at most one expiry is ever
    pending and a replaced countdown never fires.
    """

    def __init__(
        self,
        on_expire: Callable[[], None],
        seconds: float = DEFAULT_RESET_SECONDS,
        min_seconds: float = MIN_RESET_SECONDS,
        max_seconds: float = MAX_RESET_SECONDS,
    ) -> None:
        self._on_expire = on_expire
        self._bounds = (min_seconds, max_seconds)
        self._seconds = validate_reset_seconds(seconds, *self._bounds)
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def seconds(self) -> float:
        return self._seconds

    @seconds.setter
    def seconds(self, value: float) -> None:
        # applies from the next rearm()
        self._seconds = validate_reset_seconds(value, *self._bounds)

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def rearm(self) -> None:
        """Cancel any pending expiry and start a new one. Must run inside the loop."""
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._seconds, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._on_expire()
