"""Error reporting port definition (interface)."""

from typing import Protocol

__all__ = ["ErrorReporterPort"]


class ErrorReporterPort(Protocol):
    """Sink for failures that must not escape to the caller.

    Used for transport creation and send failures; only a message crosses
    this boundary.
    """

    def report_error(self, message: str, /) -> None: ...
