"""Client-side lockout after a throttling response."""

import logging
import math
import time
from collections.abc import Callable


logger = logging.getLogger(__name__)


class Cooldown:
    """Fixed-window lockout started when an upstream service throttles us.

    While active, callers reject new requests locally instead of dispatching
    them. The window is not extended by requests made during it.
    """

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.seconds = seconds
        self._clock = clock
        self._until: float | None = None

    def start(self) -> None:
        """Start (or restart) the lockout window from now."""
        self._until = self._clock() + self.seconds
        logger.warning("cooldown_started", extra={"cooldown_seconds": self.seconds})

    @property
    def active(self) -> bool:
        """Whether the lockout window is still running."""
        if self._until is None:
            return False
        if self._clock() >= self._until:
            self._until = None
            return False
        return True

    def remaining_seconds(self) -> int:
        """Seconds left in the window, rounded up (0 when inactive)."""
        if not self.active or self._until is None:
            return 0
        return math.ceil(self._until - self._clock())
