"""application/x-www-form-urlencoded body encoding."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

__all__ = ["encode_form_data"]

# Characters left unescaped by URI component encoding.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _encode_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE).replace("%20", "+")


def encode_form_data(data: Mapping[str, Any]) -> str:
    """Encode name/value pairs as an HTML form would.

    Pairs keep the mapping's iteration order. Values are stringified, both
    sides are percent-encoded and encoded spaces are written as ``+``.

    Args:
        data: Form fields.

    Returns:
        ``name=value`` pairs joined by ``&``; empty string for no fields.
    """
    pairs = [f"{_encode_component(str(name))}={_encode_component(str(value))}" for name, value in data.items()]
    return "&".join(pairs)
