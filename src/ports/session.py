"""Response session port definition (per-exchange state)."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from src.ports.request import RequestDescriptor

if TYPE_CHECKING:
    from src.ports.transport import TransportPort

__all__ = ["ExchangeState", "Handler", "ProgressHandler", "ResponseSession"]

Handler = Callable[[], None]
ProgressHandler = Callable[[int], None]


class ExchangeState(Enum):
    """Lifecycle of one exchange."""

    PENDING = "pending"
    SETTLED = "settled"


@dataclass
class ResponseSession:
    """Per-call record tracking the transport and the caller's handlers.

    Every handler slot is optional; an empty slot is skipped. The session
    settles exactly once, either on timeout or on the terminal ready state,
    and is inert afterwards.

    Attributes:
        descriptor: Request this session was issued for.
        on_timeout: Called after the transport was aborted on timeout.
        on_success: Called when the exchange ended with status 200.
        on_failure: Called when the exchange ended with any other status.
        on_complete: Called after on_success/on_failure, always.
        on_progress: Called with a 1-based step on every non-terminal
            readiness notification (asynchronous mode only).
        transport: Transport owned by this exchange, set by the dispatcher.
        state: PENDING until the exchange settles.
    """

    descriptor: RequestDescriptor
    on_timeout: Handler | None = None
    on_success: Handler | None = None
    on_failure: Handler | None = None
    on_complete: Handler | None = None
    on_progress: ProgressHandler | None = None
    transport: TransportPort | None = field(default=None, init=False)
    state: ExchangeState = field(default=ExchangeState.PENDING, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def attach_transport(self, transport: TransportPort) -> None:
        """Stamp the transport handle for this exchange.

        Raises:
            RuntimeError: If a transport was already attached.
        """
        if self.transport is not None:
            raise RuntimeError("Session already owns a transport")
        self.transport = transport

    def settle(self) -> bool:
        """Move the session from PENDING to SETTLED.

        Returns:
            True for the caller that performed the transition, False if the
            session was already settled.
        """
        with self._lock:
            if self.state is ExchangeState.SETTLED:
                return False
            self.state = ExchangeState.SETTLED
            return True

    @property
    def settled(self) -> bool:
        """True once the exchange timed out or completed."""
        return self.state is ExchangeState.SETTLED
