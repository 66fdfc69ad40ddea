"""Error reporter writing to the application log."""

import logging

from src.ports.reporting import ErrorReporterPort

__all__ = ["LoggingErrorReporter"]


class LoggingErrorReporter(ErrorReporterPort):
    """Report failures at ERROR level and count them."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        """Initialize reporter.

        Args:
            logger: Destination logger; this module's logger by default.
        """
        self._logger = logger or logging.getLogger(__name__)
        self.reported: int = 0

    def report_error(self, message: str) -> None:
        """Log message as an error.

        Args:
            message: Human-readable failure description.
        """
        self.reported += 1
        self._logger.error(message)
