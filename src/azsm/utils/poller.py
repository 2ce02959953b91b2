from __future__ import annotations

import logging
import math
import time
from typing import Protocol, TypeVar

from ..errors import AzsmError, PollTimeoutError

logger = logging.getLogger(__name__)

ResultType = TypeVar("ResultType")


class Poller(Protocol[ResultType]):
    """Query a remote server and decide when its answer means polling is over.

    ``probe`` performs one unit of work and either returns a result or raises an
    :class:`~azsm.errors.AzsmError`.  ``is_done`` receives the outcome of the
    latest probe (exactly one of ``result``/``error`` is meaningful) and must
    not perform I/O: it returns whether polling is finished, or raises the
    error that ends the poll unsuccessfully.
    """

    def probe(self) -> ResultType | None: ...

    def is_done(self, result: ResultType | None, error: AzsmError | None) -> bool: ...


class _Ticker:
    """Fixed-rate schedule anchored at ``start``; missed ticks are dropped."""

    def __init__(self, start: float, interval: float) -> None:
        self.start = start
        self.interval = interval

    def wait(self) -> None:
        now = time.monotonic()
        elapsed = now - self.start
        ticks = math.floor(elapsed / self.interval) + 1
        time.sleep(self.start + ticks * self.interval - now)


def perform_polling(
    poller: Poller[ResultType], interval: float, timeout: float
) -> ResultType | None:
    """Call ``poller.probe()`` every ``interval`` seconds until ``poller.is_done()``.

    The first probe is issued immediately.  Before every probe the deadline is
    checked, and once ``timeout`` seconds have elapsed :class:`PollTimeoutError`
    is raised without probing again.  An error raised by ``is_done`` ends the
    poll and propagates unchanged.  Returns the result of the final probe.

    ``interval`` must be positive; callers that want no polling at all skip this
    function instead of passing 0.
    """

    if interval <= 0:
        raise ValueError(f"polling interval must be positive, got {interval}")
    start = time.monotonic()
    deadline = start + timeout
    ticker = _Ticker(start, interval)
    attempt = 0
    while True:
        if time.monotonic() >= deadline:
            logger.info("Polling timed out after %s seconds (%d probes)", timeout, attempt)
            raise PollTimeoutError(timeout)
        attempt += 1
        result: ResultType | None = None
        error: AzsmError | None = None
        try:
            result = poller.probe()
        except AzsmError as exc:
            error = exc
        logger.debug("Probe %d of %r finished (error=%s)", attempt, poller, error)
        if poller.is_done(result, error):
            return result
        ticker.wait()


__all__ = ["Poller", "perform_polling"]
