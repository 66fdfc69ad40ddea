"""aiohttp-backed transport performing one HTTP exchange."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any
from xml.dom import minidom
from xml.parsers.expat import ExpatError

import aiohttp
from aiohttp import ClientTimeout
from multidict import CIMultiDict, CIMultiDictProxy

from src.ports.transport import ReadyState, TransportError, TransportPort, TransportSendError

__all__ = ["AiohttpTransport", "create_transport"]

logger = logging.getLogger(__name__)

DEFAULT_BODY_CONTENT_TYPE = "text/plain;charset=UTF-8"
XML_MEDIA_TYPES = ("text/xml", "application/xml")

# Network failures that end the exchange with status 0
NETWORK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class AiohttpTransport:
    """Single-use transport with readiness notifications.

    Lifecycle:
    - open() moves to OPENED.
    - send() performs the request, either on the running event loop
      (asynchronous) or on a private loop (synchronous).
    - HEADERS_RECEIVED, LOADING and DONE follow as the response arrives.
    - abort() cancels the request and silences further notifications.

    Every ready state change calls ``on_ready_state_change`` if set.
    """

    def __init__(self, timeout: ClientTimeout | None = None) -> None:
        """Initialize transport.

        Args:
            timeout: aiohttp timeout for the underlying request; no limit
                by default.
        """
        self.on_ready_state_change: Callable[[], None] | None = None
        self._client_timeout = timeout or ClientTimeout(total=None)
        self._ready_state = ReadyState.UNSENT
        self._method = "GET"
        self._url = ""
        self._is_async = True
        self._request_headers: dict[str, str] = {}
        self._sent = False
        self._aborted = False
        self._status = 0
        self._response_headers: CIMultiDictProxy[str] = CIMultiDictProxy(CIMultiDict())
        self._response_text = ""
        self._response_xml: Any = None
        self._xml_parsed = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def ready_state(self) -> int:
        return self._ready_state

    @property
    def status(self) -> int:
        return self._status

    @property
    def response_text(self) -> str:
        return self._response_text

    @property
    def response_xml(self) -> Any:
        """Parsed DOM document of an XML response.

        Returns:
            A minidom Document once DONE with an XML media type, None
            otherwise or when the body is not well-formed.
        """
        if self._ready_state != ReadyState.DONE:
            return None
        if not self._xml_parsed:
            self._xml_parsed = True
            self._response_xml = self._parse_xml()
        return self._response_xml

    def get_response_header(self, name: str) -> str | None:
        return self._response_headers.get(name)

    def open(self, method: str, url: str, is_async: bool = True) -> None:
        """Prepare a request; resets any previous response state.

        Args:
            method: HTTP method.
            url: Target URL.
            is_async: False makes send() block until the response is read.
        """
        self._method = method.upper()
        self._url = url
        self._is_async = is_async
        self._request_headers = {}
        self._sent = False
        self._aborted = False
        self._status = 0
        self._response_headers = CIMultiDictProxy(CIMultiDict())
        self._response_text = ""
        self._response_xml = None
        self._xml_parsed = False
        self._set_state(ReadyState.OPENED)

    def set_header(self, name: str, value: str) -> None:
        """Set a request header.

        Raises:
            TransportError: If not opened or already sent.
        """
        if self._ready_state != ReadyState.OPENED or self._sent:
            raise TransportError("Request headers can only be set after open() and before send()")
        self._request_headers[name] = value

    def send(self, body: str | None = None) -> None:
        """Send the request.

        Args:
            body: Request payload, None for no body.

        Raises:
            TransportSendError: If not opened, already sent, the event loop
                requirements of the mode are not met, or (synchronous mode)
                the server could not be reached.
        """
        if self._ready_state != ReadyState.OPENED or self._sent:
            raise TransportSendError("Transport must be opened before send()")

        if body is not None and "Content-Type" not in {k.title() for k in self._request_headers}:
            self._request_headers["Content-Type"] = DEFAULT_BODY_CONTENT_TYPE

        if self._is_async:
            self._send_async(body)
        else:
            self._send_sync(body)

    def abort(self) -> None:
        """Cancel the exchange; no readiness notification follows."""
        self._aborted = True
        task, loop = self._task, self._loop
        if task is not None and loop is not None and not task.done() and not loop.is_closed():
            loop.call_soon_threadsafe(task.cancel)
        self._ready_state = ReadyState.UNSENT
        self._status = 0
        logger.debug(f"Aborted {self._method} {self._url}")

    def _send_async(self, body: str | None) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise TransportSendError("Asynchronous send requires a running event loop") from e

        self._sent = True
        self._loop = loop
        self._task = loop.create_task(self._perform(body, raise_errors=False))

    def _send_sync(self, body: str | None) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise TransportSendError("Synchronous send cannot run inside a running event loop")

        self._sent = True
        loop = asyncio.new_event_loop()
        self._loop = loop
        try:
            self._task = loop.create_task(self._perform(body, raise_errors=True))
            loop.run_until_complete(self._task)
        except asyncio.CancelledError as e:
            raise TransportSendError(f"Request to {self._url} was aborted") from e
        finally:
            loop.close()

    async def _perform(self, body: str | None, *, raise_errors: bool) -> None:
        """Run the request on a fresh client session and publish its progress."""
        data = None if body is None else body.encode("utf-8")
        try:
            async with aiohttp.ClientSession(timeout=self._client_timeout) as session:
                async with session.request(
                    self._method, self._url, data=data, headers=self._request_headers
                ) as resp:
                    self._status = resp.status
                    self._response_headers = CIMultiDictProxy(CIMultiDict(resp.headers))
                    self._set_state(ReadyState.HEADERS_RECEIVED)
                    self._set_state(ReadyState.LOADING)
                    self._response_text = await resp.text(errors="replace")
        except NETWORK_ERRORS as e:
            logger.warning(f"{self._method} {self._url} failed: {e}")
            self._status = 0
            self._response_headers = CIMultiDictProxy(CIMultiDict())
            self._response_text = ""
            if raise_errors:
                self._ready_state = ReadyState.DONE
                raise TransportSendError(f"Server not reachable: {self._url}") from e
        self._set_state(ReadyState.DONE)

    def _set_state(self, state: ReadyState) -> None:
        if self._aborted:
            return
        self._ready_state = state
        handler = self.on_ready_state_change
        if handler is None:
            return
        try:
            handler()
        except Exception as e:  # noqa: BLE001
            logger.error(f"Ready state handler raised at state {state.name}: {e}", exc_info=True)

    def _parse_xml(self) -> Any:
        content_type = self._response_headers.get("Content-Type", "")
        essence = content_type.split(";", 1)[0].strip().lower()
        if essence not in XML_MEDIA_TYPES and not essence.endswith("+xml"):
            return None
        try:
            return minidom.parseString(self._response_text)
        except ExpatError as e:
            logger.debug(f"Response from {self._url} is not well-formed XML: {e}")
            return None


def create_transport() -> TransportPort:
    """Return a new transport for one exchange."""
    return AiohttpTransport()
