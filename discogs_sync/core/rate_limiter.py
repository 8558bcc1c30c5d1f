"""Minimum-interval pacing shared by every outbound Discogs call."""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_DELAY = 1.1
DEFAULT_PAGE_DELAY = 0.2


class RateLimiter:
    """
    Keeps at least `min_interval` seconds of idle time after each outbound call.

    One instance is shared by the reader, the validation gate and the driver
    so that the interval holds across all of them. Calls go through
    `paced()`, which waits before the call and records when it finished, so
    slow responses do not eat into the gap. Cheap reads such as collection
    pages may pass a shorter interval.
    """

    def __init__(self, min_interval: float = DEFAULT_REQUEST_DELAY,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def wait(self, interval: float | None = None) -> float:
        """Block until the interval since the previous call has passed. Returns seconds slept."""
        interval = self._min_interval if interval is None else interval
        slept = 0.0
        if self._last_call is not None:
            remaining = interval - (self._clock() - self._last_call)
            if remaining > 0:
                logger.debug(f"Pacing: sleeping {remaining:.2f}s")
                self._sleep(remaining)
                slept = remaining
        self._last_call = self._clock()
        return slept

    def done(self) -> None:
        """Record that the current call has finished."""
        self._last_call = self._clock()

    @contextmanager
    def paced(self, interval: float | None = None) -> Iterator[None]:
        self.wait(interval)
        try:
            yield
        finally:
            self.done()
