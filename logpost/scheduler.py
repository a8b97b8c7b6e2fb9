"""Flush scheduler — a single re-armable timer on the asyncio event loop."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class FlushTimer:
    """One pending timer at most, with explicit arm/cancel.

    The timer does not repeat by itself. The flush it triggers is expected to
    call ``arm()`` again once it is done, so every interval is measured from
    the end of the previous flush.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._interval = interval
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._handle: Optional[asyncio.TimerHandle] = None
        self._stopped = False

    def arm(self):
        """Schedule the callback *interval* seconds from now, replacing any
        pending one. Does nothing once the timer is stopped."""
        self.cancel()
        if self._stopped:
            return
        self._handle = self._loop.call_later(self._interval, self._fire)

    def cancel(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def stop(self):
        """Cancel the pending timer and refuse to arm again."""
        self._stopped = True
        self.cancel()

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def interval(self) -> float:
        return self._interval

    def _fire(self):
        self._handle = None
        logger.debug("Flush timer fired after %.3fs", self._interval)
        self._callback()
