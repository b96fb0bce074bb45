"""Politeness delay between consecutive requests."""

import random
import time
from collections.abc import Callable


class RequestPacer:
    """
    Sleeps between requests, never before the first one.

    A fixed delay when min == max, otherwise uniform jitter in [min, max] seconds.
    """

    def __init__(
        self,
        delay_min: float,
        delay_max: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if delay_max is None:
            delay_max = delay_min
        if delay_min < 0 or delay_max < delay_min:
            raise ValueError(f"Invalid delay range [{delay_min}, {delay_max}]")
        self.delay_min = delay_min
        self.delay_max = delay_max
        self._sleep = sleep
        self._started = False

    def next_delay(self) -> float:
        if self.delay_min == self.delay_max:
            return self.delay_min
        return random.uniform(self.delay_min, self.delay_max)

    def wait(self) -> None:
        if self._started:
            delay = self.next_delay()
            if delay > 0:
                self._sleep(delay)
        self._started = True
