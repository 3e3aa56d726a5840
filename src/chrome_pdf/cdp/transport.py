"""DevTools protocol transport over a single WebSocket.

One background thread reads every inbound frame and routes it:

* responses (frames with an ``id``) resolve the matching pending request,
* notifications (frames with a ``method``) resolve every registered
  one-shot event waiter whose name and session filter match.

Callers block on ``concurrent.futures.Future`` objects, so any number of
commands and waits can be in flight at once. The correlation tables are
only touched under ``self._lock``.
"""

from __future__ import annotations

import itertools
import json
import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Optional

import websocket

from chrome_pdf.exceptions import (
    BrowserConnectionError,
    CommandTimeoutError,
    EventTimeoutError,
    ProtocolError,
)

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    id: int
    method: str
    future: Future = field(default_factory=Future)


@dataclass(eq=False)
class EventWaiter:
    """One-shot waiter for a protocol notification."""

    transport: CDPTransport
    event: str
    session_id: Optional[str] = None
    future: Future = field(default_factory=Future)

    def matches(self, event: str, session_id: Optional[str]) -> bool:
        if event != self.event:
            return False
        return self.session_id is None or self.session_id == session_id

    def wait(self, timeout: Optional[float] = None) -> dict:
        """Block until the event arrives and return its params."""
        if timeout is None:
            timeout = self.transport.event_timeout
        try:
            return self.future.result(timeout)
        except FutureTimeoutError:
            if not self.transport._remove_waiter(self):
                # Resolved between the timeout and the removal.
                return self.future.result()
            where = f" on session {self.session_id}" if self.session_id else ""
            raise EventTimeoutError(
                f"Timeout waiting for {self.event}{where} after {timeout:g}s"
            ) from None


class CDPTransport:
    """Duplex DevTools channel shared by every session of one browser."""

    def __init__(
        self,
        ws: websocket.WebSocket,
        *,
        command_timeout: float = 30.0,
        event_timeout: float = 30.0,
    ) -> None:
        self.command_timeout = command_timeout
        self.event_timeout = event_timeout
        self._ws = ws
        self._lock = threading.Lock()
        self._send_lock = threading.Lock()
        self._ids = itertools.count(1)
        self._pending: dict[int, PendingRequest] = {}
        self._waiters: list[EventWaiter] = []
        self._closed = False
        self._reader = threading.Thread(
            target=self._dispatch_loop, name="cdp-dispatch", daemon=True
        )
        self._reader.start()

    @classmethod
    def connect(
        cls,
        ws_endpoint: str,
        *,
        connect_timeout: float = 10.0,
        command_timeout: float = 30.0,
        event_timeout: float = 30.0,
    ) -> CDPTransport:
        """Open the browser-level WebSocket and start dispatching."""
        try:
            # Chrome rejects handshakes carrying an Origin it was not told to allow.
            ws = websocket.create_connection(
                ws_endpoint, timeout=connect_timeout, suppress_origin=True
            )
        except (websocket.WebSocketException, OSError) as exc:
            raise BrowserConnectionError(
                f"Could not open DevTools connection to {ws_endpoint}: {exc}"
            ) from exc
        ws.settimeout(None)
        logger.debug("Connected to %s", ws_endpoint)
        return cls(ws, command_timeout=command_timeout, event_timeout=event_timeout)

    def __enter__(self) -> CDPTransport:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # -- Outbound -----------------------------------------------------------

    def _send(
        self,
        method: str,
        params: Optional[dict] = None,
        session_id: Optional[str] = None,
    ) -> PendingRequest:
        with self._lock:
            if self._closed:
                raise BrowserConnectionError(
                    f"Cannot send {method}: DevTools connection is closed"
                )
            request = PendingRequest(next(self._ids), method)
            self._pending[request.id] = request

        frame: dict[str, Any] = {"id": request.id, "method": method, "params": params or {}}
        if session_id:
            frame["sessionId"] = session_id

        logger.debug("-> %d %s", request.id, method)
        try:
            with self._send_lock:
                self._ws.send(json.dumps(frame))
        except (websocket.WebSocketException, OSError) as exc:
            self._pop_pending(request.id)
            raise BrowserConnectionError(f"Failed to send {method}: {exc}") from exc
        return request

    def send(
        self,
        method: str,
        params: Optional[dict] = None,
        session_id: Optional[str] = None,
    ) -> Future:
        """Send a command; the returned future resolves with its result."""
        return self._send(method, params, session_id).future

    def call(
        self,
        method: str,
        params: Optional[dict] = None,
        session_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict:
        """Send a command and block until its response arrives.

        Raises:
            ProtocolError: the browser returned an error object.
            CommandTimeoutError: no response within *timeout*.
            BrowserConnectionError: the channel is closed or dropped.
        """
        if timeout is None:
            timeout = self.command_timeout
        request = self._send(method, params, session_id)
        try:
            return request.future.result(timeout)
        except FutureTimeoutError:
            if self._pop_pending(request.id) is None:
                return request.future.result()
            raise CommandTimeoutError(
                f"No response to {method} (id {request.id}) after {timeout:g}s"
            ) from None

    def expect_event(self, event: str, session_id: Optional[str] = None) -> EventWaiter:
        """Register a waiter now; call ``.wait()`` on it later.

        Register before sending the command that triggers the event, so a
        fast notification cannot slip past.
        """
        waiter = EventWaiter(self, event, session_id)
        with self._lock:
            if self._closed:
                raise BrowserConnectionError(
                    f"Cannot wait for {event}: DevTools connection is closed"
                )
            self._waiters.append(waiter)
        return waiter

    def wait_for_event(
        self,
        event: str,
        session_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict:
        return self.expect_event(event, session_id).wait(timeout)

    def _pop_pending(self, request_id: int) -> Optional[PendingRequest]:
        with self._lock:
            return self._pending.pop(request_id, None)

    def _remove_waiter(self, waiter: EventWaiter) -> bool:
        with self._lock:
            try:
                self._waiters.remove(waiter)
            except ValueError:
                return False
            return True

    # -- Inbound ------------------------------------------------------------

    def _dispatch_loop(self) -> None:
        reason = "DevTools connection closed"
        while True:
            try:
                raw = self._ws.recv()
            except (websocket.WebSocketException, OSError) as exc:
                if not self._closed:
                    reason = f"DevTools connection lost: {exc}"
                    logger.warning(reason)
                break
            if not raw:
                continue
            try:
                message = json.loads(raw)
            except ValueError:
                logger.debug("Discarding non-JSON frame: %.200r", raw)
                continue
            if isinstance(message, dict):
                self._dispatch(message)
        self._fail_outstanding(reason)

    def _dispatch(self, message: dict) -> None:
        if "id" in message:
            request = self._pop_pending(message["id"])
            if request is None or request.future.cancelled():
                logger.debug("Response for unknown id %r", message["id"])
                return
            error = message.get("error")
            if error:
                logger.debug("<- %d %s error: %s", request.id, request.method, error)
                request.future.set_exception(
                    ProtocolError(
                        request.method,
                        error.get("message", "unknown error"),
                        error.get("code"),
                    )
                )
            else:
                logger.debug("<- %d %s", request.id, request.method)
                request.future.set_result(message.get("result") or {})
            return

        event = message.get("method")
        if not event:
            return
        session_id = message.get("sessionId")
        with self._lock:
            matched = [w for w in self._waiters if w.matches(event, session_id)]
            for waiter in matched:
                self._waiters.remove(waiter)
        for waiter in matched:
            if not waiter.future.cancelled():
                waiter.future.set_result(message.get("params") or {})

    def _fail_outstanding(self, reason: str) -> None:
        with self._lock:
            self._closed = True
            pending = list(self._pending.values())
            waiters = list(self._waiters)
            self._pending.clear()
            self._waiters.clear()
        for request in pending:
            if not request.future.cancelled():
                request.future.set_exception(
                    BrowserConnectionError(f"{reason} while waiting for {request.method}")
                )
        for waiter in waiters:
            if not waiter.future.cancelled():
                waiter.future.set_exception(
                    BrowserConnectionError(f"{reason} while waiting for {waiter.event}")
                )

    # -- Teardown -----------------------------------------------------------

    def close(self) -> None:
        """Close the channel and stop the dispatch thread. Idempotent."""
        with self._lock:
            already_closed = self._closed
            self._closed = True
        if not already_closed:
            try:
                self._ws.send_close()
            except (websocket.WebSocketException, OSError):
                logger.debug("Close frame not sent", exc_info=True)
        try:
            # abort() wakes the reader blocked in recv().
            self._ws.abort()
        except OSError:
            logger.debug("Socket already shut down", exc_info=True)
        if self._reader is not threading.current_thread():
            self._reader.join(timeout=5)
        self._ws.shutdown()
