"""One-shot timers on the asyncio event loop."""

import asyncio
import logging
import threading
from collections.abc import Callable

from src.ports.timer import TimerHandle, TimerPort

__all__ = ["AsyncioTimer"]

logger = logging.getLogger(__name__)


class AsyncioTimer(TimerPort):
    """Timer bound to the running event loop.

    Synchronous callers have no running loop while they block; their
    timers run on a daemon thread instead.
    """

    def call_later(self, delay_sec: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule callback once after delay_sec seconds.

        Args:
            delay_sec: Delay in seconds.
            callback: Zero-argument callable.

        Returns:
            asyncio.TimerHandle or threading.Timer; both support cancel().
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop, arming thread timer for {delay_sec:.3f}s")
            timer = threading.Timer(delay_sec, callback)
            timer.daemon = True
            timer.start()
            return timer
        return loop.call_later(delay_sec, callback)
