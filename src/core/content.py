"""Decoding of response bodies by declared content type."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from src.ports.session import ResponseSession
from src.ports.transport import ReadyState

__all__ = ["ContentDecodeError", "MediaKind", "decode", "media_kind"]


class ContentDecodeError(ValueError):
    """Response body does not match its declared content type."""


class MediaKind(Enum):
    """Recognized families of response media types."""

    MARKUP = "markup"
    SCRIPT = "script"
    TEXT = "text"


_MEDIA_KINDS: dict[str, MediaKind] = {
    "text/xml": MediaKind.MARKUP,
    "text/json": MediaKind.SCRIPT,
    "text/javascript": MediaKind.SCRIPT,
    "application/javascript": MediaKind.SCRIPT,
    "application/x-javascript": MediaKind.SCRIPT,
}


def media_kind(content_type: str | None) -> MediaKind:
    """Classify a Content-Type header value.

    Parameters such as ``charset`` are ignored.

    Args:
        content_type: Raw header value, possibly None.

    Returns:
        The matching MediaKind, TEXT when nothing matches.
    """
    if not content_type:
        return MediaKind.TEXT
    essence = content_type.split(";", 1)[0].strip().lower()
    return _MEDIA_KINDS.get(essence, MediaKind.TEXT)


def decode(session: ResponseSession) -> Any:
    """Decode the response body of a finished exchange.

    Safe to call at any time: returns None until the transport reached the
    terminal ready state. The session is only read.

    Args:
        session: Session of the exchange.

    Returns:
        A DOM document for XML, the parsed value for JSON/script types,
        the raw text otherwise; None if the exchange is not finished.

    Raises:
        ContentDecodeError: If a JSON/script body cannot be parsed.
    """
    transport = session.transport
    if transport is None or transport.ready_state != ReadyState.DONE:
        return None

    kind = media_kind(transport.get_response_header("Content-Type"))
    match kind:
        case MediaKind.MARKUP:
            return transport.response_xml
        case MediaKind.SCRIPT:
            try:
                return json.loads(transport.response_text)
            except json.JSONDecodeError as e:
                raise ContentDecodeError(f"Response body is not valid JSON: {e}") from e
        case _:
            return transport.response_text
