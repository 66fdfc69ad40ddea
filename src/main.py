"""Application entrypoint: run one configured HTTP exchange."""

import asyncio
import logging
from collections.abc import Callable

from src.adapters.driven.config.settings import Settings, load_settings
from src.adapters.driven.http.transport import create_transport
from src.adapters.driven.logging.error_reporter import LoggingErrorReporter
from src.adapters.driven.logging.logging_config import configure_logs
from src.adapters.driven.timer.asyncio_timer import AsyncioTimer
from src.core.content import ContentDecodeError, decode
from src.core.dispatcher import SUCCESS_STATUS, RequestDispatcher
from src.ports.reporting import ErrorReporterPort
from src.ports.request import HttpMethod, RequestDescriptor
from src.ports.session import ResponseSession
from src.ports.transport import ReadyState

__all__ = ["build_dispatcher", "main", "make_session", "report_outcome", "run_exchange", "run_exchange_sync"]

logger = logging.getLogger(__name__)


def build_dispatcher(reporter: ErrorReporterPort | None = None) -> RequestDispatcher:
    """Wire the dispatcher with the aiohttp transport and asyncio timer.

    Args:
        reporter: Failure sink; a LoggingErrorReporter by default.

    Returns:
        Ready-to-use dispatcher.
    """
    return RequestDispatcher(
        transport_factory=create_transport,
        timer=AsyncioTimer(),
        reporter=reporter or LoggingErrorReporter(),
    )


def make_session(descriptor: RequestDescriptor, on_settled: Callable[[], None]) -> ResponseSession:
    """Create a session whose handlers log the exchange.

    Args:
        descriptor: Request being issued.
        on_settled: Called once the exchange completed or timed out.

    Returns:
        Session with every handler slot filled.
    """
    session = ResponseSession(descriptor=descriptor)

    def on_failure() -> None:
        status = session.transport.status if session.transport is not None else 0
        logger.warning(f"Request to {descriptor.url} failed with status {status}")

    def on_timeout() -> None:
        logger.warning(f"Request to {descriptor.url} timed out after {descriptor.timeout_ms}ms")
        on_settled()

    session.on_progress = lambda step: logger.debug(f"Request to {descriptor.url}: progress step {step}")
    session.on_success = lambda: logger.info(f"Request to {descriptor.url} succeeded")
    session.on_failure = on_failure
    session.on_complete = on_settled
    session.on_timeout = on_timeout
    return session


def _issue(
    dispatcher: RequestDispatcher,
    method: HttpMethod,
    descriptor: RequestDescriptor,
    session: ResponseSession,
) -> None:
    if method is HttpMethod.POST:
        dispatcher.post(descriptor, session)
    else:
        dispatcher.get(descriptor, session)


async def run_exchange(
    settings: Settings,
    dispatcher: RequestDispatcher,
    reporter: LoggingErrorReporter,
) -> ResponseSession:
    """Issue an asynchronous exchange and wait until it settles.

    Returns early when the dispatcher reported a failure and no timeout is
    armed for the exchange, since only that timer could still settle it.

    Args:
        settings: Request configuration.
        dispatcher: Dispatcher to issue the request with.
        reporter: Reporter the dispatcher writes failures to.

    Returns:
        The exchange's session.
    """
    done = asyncio.Event()
    descriptor = settings.to_descriptor()
    session = make_session(descriptor, done.set)

    reported_before = reporter.reported
    _issue(dispatcher, settings.method, descriptor, session)
    timer_pending = session.transport is not None and bool(descriptor.timeout_ms and descriptor.timeout_ms > 0)
    if reporter.reported > reported_before and not timer_pending:
        return session

    await done.wait()
    return session


def run_exchange_sync(
    settings: Settings,
    dispatcher: RequestDispatcher,
) -> ResponseSession:
    """Issue a synchronous exchange; returns once send completed.

    Args:
        settings: Request configuration.
        dispatcher: Dispatcher to issue the request with.

    Returns:
        The exchange's session.
    """
    descriptor = settings.to_descriptor()
    session = make_session(descriptor, lambda: None)
    _issue(dispatcher, settings.method, descriptor, session)
    return session


def report_outcome(session: ResponseSession) -> int:
    """Log the decoded response content.

    Args:
        session: Session of a finished exchange.

    Returns:
        0 if the exchange succeeded and its content decoded, 1 otherwise.
    """
    transport = session.transport
    if not session.settled or transport is None or transport.ready_state != ReadyState.DONE:
        logger.error(f"Request to {session.descriptor.url} did not complete")
        return 1

    try:
        content = decode(session)
    except ContentDecodeError as e:
        logger.error(f"Could not decode response: {e}")
        return 1

    logger.info(f"Response content: {content!r}")
    return 0 if transport.status == SUCCESS_STATUS else 1


def main() -> int:
    """Run one HTTP exchange described by the environment.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Dispatch the request (blocking, or on a fresh event loop).
    4. Log the decoded content.

    Returns:
        Process exit code.
    """
    configure_logs()
    logger.info("Starting request dispatcher...")

    try:
        config = load_settings()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check REQUEST_URL, REQUEST_METHOD, REQUEST_TIMEOUT_MS, "
            "REQUEST_SYNCHRONOUS and that REQUEST_BODY_FILE (if set) is a valid JSON object.",
            exc,
        )
        return 1

    reporter = LoggingErrorReporter()
    dispatcher = build_dispatcher(reporter)

    if config.synchronous:
        session = run_exchange_sync(config, dispatcher)
    else:
        session = asyncio.run(run_exchange(config, dispatcher, reporter))

    return report_outcome(session)


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user (Ctrl+C).")
