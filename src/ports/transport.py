"""Transport port definition (interface, states and errors)."""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import Any, Protocol

__all__ = [
    "ReadyState",
    "TransportError",
    "TransportFactory",
    "TransportPort",
    "TransportSendError",
    "TransportUnavailableError",
]


class ReadyState(IntEnum):
    """Progress stages of a transport."""

    UNSENT = 0
    OPENED = 1
    HEADERS_RECEIVED = 2
    LOADING = 3
    DONE = 4


class TransportError(Exception):
    """Base class for transport failures."""


class TransportUnavailableError(TransportError):
    """The host cannot produce a transport instance."""


class TransportSendError(TransportError):
    """The transport failed while sending the request."""


class TransportPort(Protocol):
    """Interface of the object performing one network exchange.

    A transport is used for a single exchange and then discarded. The
    dispatcher registers ``on_ready_state_change`` before ``open`` in
    asynchronous mode; the transport calls it on every ready state change.
    """

    on_ready_state_change: Callable[[], None] | None

    @property
    def ready_state(self) -> int: ...

    @property
    def status(self) -> int: ...

    @property
    def response_text(self) -> str: ...

    @property
    def response_xml(self) -> Any: ...

    def open(self, method: str, url: str, is_async: bool = True) -> None: ...

    def set_header(self, name: str, value: str) -> None: ...

    def send(self, body: str | None = None) -> None: ...

    def abort(self) -> None: ...

    def get_response_header(self, name: str) -> str | None: ...


TransportFactory = Callable[[], "TransportPort | None"]
