"""Tests for main application entrypoint."""

import asyncio
from unittest.mock import Mock, patch

import pytest

from src.adapters.driven.config.settings import Settings
from src.adapters.driven.logging.error_reporter import LoggingErrorReporter
from src.core.dispatcher import RequestDispatcher
from src.main import build_dispatcher, main, make_session, report_outcome, run_exchange, run_exchange_sync
from src.ports.request import HttpMethod, RequestDescriptor
from src.ports.session import ResponseSession
from src.ports.transport import ReadyState

__all__ = []


class ImmediateTransport:
    """Transport that completes as soon as it is sent."""

    def __init__(self, status: int = 200, text: str = "hello", content_type: str = "text/plain") -> None:
        self.on_ready_state_change = None
        self.ready_state = ReadyState.UNSENT
        self.status = 0
        self.response_text = ""
        self.response_xml = None
        self.opened: tuple[str, str, bool] | None = None
        self.sent: list[str | None] = []
        self._status = status
        self._text = text
        self._content_type = content_type

    def open(self, method: str, url: str, is_async: bool = True) -> None:
        self.opened = (method, url, is_async)
        self.ready_state = ReadyState.OPENED

    def set_header(self, name: str, value: str) -> None:
        pass

    def send(self, body: str | None = None) -> None:
        self.sent.append(body)
        self.status = self._status
        self.response_text = self._text
        self.ready_state = ReadyState.DONE
        if self.on_ready_state_change is not None:
            self.on_ready_state_change()

    def abort(self) -> None:
        self.ready_state = ReadyState.UNSENT

    def get_response_header(self, name: str) -> str | None:
        return self._content_type


def dispatcher_with(transport: object | None, reporter: LoggingErrorReporter) -> RequestDispatcher:
    return RequestDispatcher(transport_factory=lambda: transport, timer=Mock(), reporter=reporter)


def test_build_dispatcher_returns_wired_dispatcher() -> None:
    """build_dispatcher() should produce a dispatcher with default adapters."""
    assert isinstance(build_dispatcher(), RequestDispatcher)


def test_make_session_fills_every_slot() -> None:
    """The CLI session should log every event and report settlement."""
    settled = Mock()
    session = make_session(RequestDescriptor(url="http://x"), settled)

    session.on_progress(1)
    session.on_success()
    session.on_failure()
    session.on_complete()
    session.on_timeout()

    assert settled.call_count == 2


@pytest.mark.asyncio
async def test_run_exchange_waits_for_completion() -> None:
    """Async run should return a settled session."""
    transport = ImmediateTransport()
    reporter = LoggingErrorReporter()
    settings = Settings(url="http://localhost:8000/ok")

    session = await asyncio.wait_for(run_exchange(settings, dispatcher_with(transport, reporter), reporter), 5)

    assert session.settled is True
    assert transport.opened == ("GET", "http://localhost:8000/ok", True)


@pytest.mark.asyncio
async def test_run_exchange_returns_on_reported_failure() -> None:
    """A creation failure without timeout should not block forever."""
    reporter = LoggingErrorReporter()
    settings = Settings(url="http://localhost:8000/ok")

    session = await asyncio.wait_for(run_exchange(settings, dispatcher_with(None, reporter), reporter), 5)

    assert session.settled is False
    assert reporter.reported == 1


@pytest.mark.asyncio
async def test_run_exchange_returns_on_creation_failure_with_timeout() -> None:
    """A creation failure should not wait on a timeout that was never armed."""
    reporter = LoggingErrorReporter()
    settings = Settings(url="http://localhost:8000/ok", timeout_ms=50)

    session = await asyncio.wait_for(run_exchange(settings, dispatcher_with(None, reporter), reporter), 1)

    assert session.transport is None
    assert session.settled is False
    assert reporter.reported == 1


def test_run_exchange_sync_posts_body() -> None:
    """Sync run should issue a blocking POST with the encoded body."""
    transport = ImmediateTransport()
    reporter = LoggingErrorReporter()
    settings = Settings(url="http://localhost:8000/data", method=HttpMethod.POST, synchronous=True)
    settings.body = {"q": "a b"}

    session = run_exchange_sync(settings, dispatcher_with(transport, reporter))

    assert session.settled is True
    assert transport.opened == ("POST", "http://localhost:8000/data", False)
    assert transport.sent == ["q=a+b"]


def _settled_session(transport: ImmediateTransport) -> ResponseSession:
    session = ResponseSession(descriptor=RequestDescriptor(url="http://x"))
    session.attach_transport(transport)
    transport.send(None)
    session.settle()
    return session


def test_report_outcome_success() -> None:
    """A 200 response should give exit code 0."""
    assert report_outcome(_settled_session(ImmediateTransport())) == 0


def test_report_outcome_http_failure() -> None:
    """A non-200 response should give exit code 1."""
    assert report_outcome(_settled_session(ImmediateTransport(status=503))) == 1


def test_report_outcome_undecodable_body() -> None:
    """A script-typed body that is not JSON should give exit code 1."""
    transport = ImmediateTransport(text="alert(1)", content_type="text/javascript")

    assert report_outcome(_settled_session(transport)) == 1


def test_report_outcome_unsettled() -> None:
    """An exchange that never settled should give exit code 1."""
    session = ResponseSession(descriptor=RequestDescriptor(url="http://x"))

    assert report_outcome(session) == 1


def test_main_returns_1_on_config_error() -> None:
    """main() should log and fail when configuration is invalid."""
    with (
        patch("src.main.configure_logs"),
        patch("src.main.load_settings", side_effect=RuntimeError("Missing REQUEST_URL")),
        patch("src.main.build_dispatcher") as mock_build,
        patch("src.main.logger") as mock_logger,
    ):
        assert main() == 1

    mock_build.assert_not_called()
    mock_logger.error.assert_called()


def test_main_runs_async_exchange() -> None:
    """main() should run the exchange on an event loop and report success."""
    transport = ImmediateTransport()

    with (
        patch("src.main.configure_logs"),
        patch("src.main.load_settings", return_value=Settings(url="http://localhost:8000/ok")),
        patch("src.main.create_transport", return_value=transport),
    ):
        assert main() == 0

    assert transport.opened == ("GET", "http://localhost:8000/ok", True)


def test_main_runs_sync_exchange() -> None:
    """main() should run synchronous exchanges without an event loop."""
    transport = ImmediateTransport(status=404)

    with (
        patch("src.main.configure_logs"),
        patch(
            "src.main.load_settings",
            return_value=Settings(url="http://localhost:8000/missing", synchronous=True),
        ),
        patch("src.main.create_transport", return_value=transport),
    ):
        assert main() == 1

    assert transport.opened == ("GET", "http://localhost:8000/missing", False)
