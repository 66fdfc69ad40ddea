"""Request descriptor port definition (DTO)."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = ["HttpMethod", "RequestDescriptor"]


class HttpMethod(str, Enum):
    """HTTP methods the dispatcher knows how to issue."""

    GET = "GET"
    POST = "POST"


@dataclass
class RequestDescriptor:
    """Description of one HTTP exchange.

    The dispatcher only writes ``method`` (through the entry point used) and
    defaults ``synchronous``; everything else is left as the caller set it.

    Attributes:
        url: Target endpoint.
        content_type: Media type of the POST body, sent as Content-Type.
        body: Form fields to POST; None sends an empty body.
        timeout_ms: Milliseconds before the exchange is aborted; None or 0
            disables the timeout.
        synchronous: Block the caller until the exchange completes.
        method: Assigned by ``RequestDispatcher.get``/``post``.
    """

    url: str
    content_type: str | None = None
    body: Mapping[str, Any] | None = None
    timeout_ms: int | None = None
    synchronous: bool | None = None
    method: HttpMethod | None = field(default=None)

    def __post_init__(self) -> None:
        if self.timeout_ms is not None and self.timeout_ms < 0:
            raise ValueError(f"timeout_ms must be non-negative (got: {self.timeout_ms})")
