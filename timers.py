import asyncio
from typing import Callable, Optional

from logging_config import get_logger

logger = get_logger(__name__)


class InactivityTimer:
    """Single-shot, cancelable timer owned by one room member.

    At most one callback is scheduled at any time: ``reset()`` cancels the
    pending one before scheduling the next. The callback receives the timer
    itself so the owner can ignore a firing from a timer it no longer holds.
    """

    def __init__(self, timeout_seconds: float, on_expire: Callable[["InactivityTimer"], None]):
        self.timeout_seconds = timeout_seconds
        self._on_expire = on_expire
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self):
        """Schedule the timer; equivalent to reset()."""
        self.reset()

    def reset(self):
        if self._cancelled:
            logger.debug("Ignoring reset of a cancelled inactivity timer")
            return
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.timeout_seconds, self._fire)

    def cancel(self):
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self):
        self._handle = None
        if self._cancelled:
            return
        self._on_expire(self)
