"""Fixed-delay retry policy.

Used only where giving up would lose data: persisting the bootstrap bundle
right after initialization. Every other failure waits for the next poll
tick instead of retrying in place.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry a call with a constant delay between attempts.

    ``max_attempts=None`` retries forever.
    """

    delay: float = 3.0
    max_attempts: int | None = None
    sleep: Callable[[float], None] = field(
        default=time.sleep, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"delay cannot be negative, got {self.delay}")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    def call(
        self,
        fn: Callable[[], T],
        *,
        retry_on: tuple[type[BaseException], ...],
        description: str = "operation",
    ) -> T:
        """Call *fn* until it returns, retrying on *retry_on* exceptions.

        Exceptions not listed in *retry_on* propagate immediately. When
        ``max_attempts`` is reached, the last error propagates.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn()
            except retry_on as exc:
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    raise
                logger.error(
                    "Cannot %s (attempt %d), retrying in %.1fs: %s",
                    description, attempt, self.delay, exc,
                )
                self.sleep(self.delay)
