"""Client-side pacing between successive calls."""

from __future__ import annotations

import time
from collections.abc import Callable


class Pacer:
    """Enforce a minimum interval between successive calls."""

    def __init__(
        self,
        interval: float = 0.3,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self._sleep = sleep
        self._clock = clock
        self._last_call: float | None = None

    def wait(self) -> None:
        if self._last_call is not None:
            elapsed = self._clock() - self._last_call
            if elapsed < self.interval:
                self._sleep(self.interval - elapsed)
        self._last_call = self._clock()
