"""Bounded retry with a fixed interval."""

import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type

from .windowing import WindowError


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an attempt up to ``attempts`` times, sleeping ``interval_s`` between tries.

    An attempt succeeds by returning a truthy value. Raising one of
    ``retry_on`` counts as a failed attempt; other exceptions propagate.
    """
    attempts: int = 24
    interval_s: float = 0.016
    retry_on: Tuple[Type[BaseException], ...] = (WindowError,)

    def run(self, attempt: Callable[[], bool]) -> bool:
        """Returns True once an attempt succeeds, False if all attempts failed."""
        for i in range(self.attempts):
            try:
                if attempt():
                    return True
            except self.retry_on:
                pass
            if i + 1 < self.attempts:
                time.sleep(self.interval_s)
        return False
