"""Request dispatcher: drives one HTTP exchange and fires session handlers."""

import logging
from collections.abc import Callable
from typing import Any

from src.core.form import encode_form_data
from src.ports.reporting import ErrorReporterPort
from src.ports.request import HttpMethod, RequestDescriptor
from src.ports.session import ResponseSession
from src.ports.timer import TimerHandle, TimerPort
from src.ports.transport import ReadyState, TransportFactory, TransportPort, TransportUnavailableError

__all__ = ["RequestDispatcher", "SUCCESS_STATUS"]

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200
TRANSPORT_CREATION_FAILED = "Fail to create a transport"
SERVER_NOT_REACHABLE = "Server is not reachable"


def _invoke(handler: Callable[..., None] | None, *args: Any) -> None:
    """Call handler with args if the slot is filled."""
    if handler is not None:
        handler(*args)


class _Exchange:
    """Handlers bound to a single exchange.

    Both the timeout and the terminal readiness path go through
    ``ResponseSession.settle``; whichever comes second is a no-op.
    """

    def __init__(self, session: ResponseSession, transport: TransportPort) -> None:
        self.session = session
        self.transport = transport
        self.timer: TimerHandle | None = None
        self.progress_step = 0

    def on_timeout(self) -> None:
        if not self.session.settle():
            return
        logger.warning(f"Request to {self.session.descriptor.url} timed out, aborting")
        self.transport.abort()
        _invoke(self.session.on_timeout)

    def on_ready_state_change(self) -> None:
        if self.session.settled:
            return
        if self.transport.ready_state == ReadyState.DONE:
            self.complete()
        else:
            self.progress_step += 1
            _invoke(self.session.on_progress, self.progress_step)

    def complete(self) -> None:
        if not self.session.settle():
            return
        if self.timer is not None:
            self.timer.cancel()

        status = self.transport.status
        logger.debug(f"Request to {self.session.descriptor.url} completed with status {status}")
        if status == SUCCESS_STATUS:
            _invoke(self.session.on_success)
        else:
            _invoke(self.session.on_failure)
        _invoke(self.session.on_complete)


class RequestDispatcher:
    """Issue GET/POST exchanges and route their outcome to session handlers.

    Features:
    - Synchronous (blocking) or asynchronous (readiness-driven) exchanges.
    - Optional timeout that aborts the transport.
    - Progress notifications while an asynchronous exchange is in flight.

    A fresh transport is created for every call; failures to create or to
    send are reported through the reporter and never raised.
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        timer: TimerPort,
        reporter: ErrorReporterPort,
    ) -> None:
        """Initialize dispatcher.

        Args:
            transport_factory: Callable producing a new transport per call.
            timer: One-shot timer used for timeouts.
            reporter: Sink for creation and send failures.
        """
        self._transport_factory = transport_factory
        self._timer = timer
        self._reporter = reporter

    def get(self, descriptor: RequestDescriptor, session: ResponseSession) -> None:
        """Send a GET request described by descriptor."""
        descriptor.method = HttpMethod.GET
        self.dispatch(descriptor, session)

    def post(self, descriptor: RequestDescriptor, session: ResponseSession) -> None:
        """Send a POST request described by descriptor."""
        descriptor.method = HttpMethod.POST
        self.dispatch(descriptor, session)

    def dispatch(self, descriptor: RequestDescriptor, session: ResponseSession) -> None:
        """Run one exchange.

        Steps:
        1. Create a transport; report and return if none is available.
        2. Arm the timeout timer if ``timeout_ms`` is positive.
        3. Asynchronous mode: register the readiness handler.
        4. Open, set the content type (POST) and send.
        5. Synchronous mode: run the completion handler once send returned.

        Args:
            descriptor: What to send; ``method`` must already be set.
            session: Handlers and per-call state; must not have been
                dispatched before.
        """
        if session.transport is not None:
            self._reporter.report_error("Session was already dispatched; create a new one per request")
            return

        transport = self._create_transport()
        if transport is None:
            self._reporter.report_error(TRANSPORT_CREATION_FAILED)
            return

        if descriptor.synchronous is None:
            descriptor.synchronous = False
        method = descriptor.method or HttpMethod.GET

        session.attach_transport(transport)
        exchange = _Exchange(session, transport)

        if descriptor.timeout_ms is not None and descriptor.timeout_ms > 0:
            exchange.timer = self._timer.call_later(descriptor.timeout_ms / 1_000.0, exchange.on_timeout)

        if not descriptor.synchronous:
            transport.on_ready_state_change = exchange.on_ready_state_change

        logger.debug(
            f"Dispatching {method.value} {descriptor.url} "
            f"(synchronous={descriptor.synchronous}, timeout_ms={descriptor.timeout_ms or 0})"
        )
        if not self._transmit(transport, method, descriptor):
            return

        if descriptor.synchronous:
            exchange.complete()

    def _create_transport(self) -> TransportPort | None:
        try:
            return self._transport_factory()
        except TransportUnavailableError as e:
            logger.debug(f"Transport factory unavailable: {e}")
            return None

    def _transmit(self, transport: TransportPort, method: HttpMethod, descriptor: RequestDescriptor) -> bool:
        """Open the transport and send the payload.

        Returns:
            True if send returned normally, False if the failure was reported.
        """
        try:
            transport.open(method.value, descriptor.url, not descriptor.synchronous)
            if method is HttpMethod.POST:
                if descriptor.content_type is not None:
                    transport.set_header("Content-Type", descriptor.content_type)
                payload = "" if descriptor.body is None else encode_form_data(descriptor.body)
                transport.send(payload)
            else:
                transport.send(None)
        except Exception as e:  # noqa: BLE001
            logger.debug(f"Send to {descriptor.url} failed: {e}", exc_info=True)
            self._reporter.report_error(f"{SERVER_NOT_REACHABLE}: {descriptor.url}")
            return False
        return True
