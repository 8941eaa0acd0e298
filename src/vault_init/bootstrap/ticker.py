"""Fixed-rate scheduler for the poll loop.

Ticks run strictly one after another on the calling thread. If a tick
overruns its slot, the next tick starts as soon as it finishes and the
missed slots are dropped, never queued.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Ticker:
    """Runs a callable once immediately, then every ``interval`` seconds.

    ``stop()`` may be called from another thread or a signal handler; the
    loop exits before the next tick, after any in-flight tick completes.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be greater than zero, got {interval}")
        self._interval = interval
        self._clock = clock
        self._stop = threading.Event()
        self._ticks = 0

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def ticks(self) -> int:
        """Number of ticks run so far."""
        return self._ticks

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def run(
        self,
        tick: Callable[[], Any],
        *,
        max_ticks: int | None = None,
    ) -> None:
        """Run *tick* until stopped (or *max_ticks* ticks have run).

        Exceptions raised by *tick* propagate and end the loop.
        """
        next_at = self._clock()
        while not self._stop.is_set():
            wait = next_at - self._clock()
            if wait > 0 and self._stop.wait(wait):
                break

            logger.debug("Tick %d", self._ticks + 1)
            tick()
            self._ticks += 1
            if max_ticks is not None and self._ticks >= max_ticks:
                break

            next_at += self._interval
            now = self._clock()
            if next_at < now:
                skipped = int((now - next_at) // self._interval)
                if skipped:
                    logger.debug("Tick overran, dropping %d missed tick(s)", skipped)
                next_at = now
