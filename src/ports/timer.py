"""Timer port definition (interface)."""

from collections.abc import Callable
from typing import Protocol

__all__ = ["TimerHandle", "TimerPort"]


class TimerHandle(Protocol):
    """Handle of an armed one-shot timer."""

    def cancel(self) -> None: ...


class TimerPort(Protocol):
    """Interface for arming one-shot timers."""

    def call_later(self, delay_sec: float, callback: Callable[[], None], /) -> TimerHandle:
        """Run callback once after delay_sec seconds.

        Args:
            delay_sec: Delay in seconds.
            callback: Zero-argument callable to run.

        Returns:
            Handle whose cancel() prevents the callback from running.
        """
        ...
