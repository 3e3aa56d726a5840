"""Shared fixtures: an in-memory WebSocket and a scripted fake browser."""

from __future__ import annotations

import base64
import itertools
import json
import queue
import threading

import pytest
import websocket

from chrome_pdf.cdp.transport import CDPTransport

_CLOSED = object()


class FakeWebSocket:
    """Stands in for ``websocket.WebSocket`` on both ends of the channel.

    Frames the transport sends land in ``sent``; frames pushed with
    ``push`` are returned from ``recv``. An optional *responder* is called
    with every sent frame and returns the frames to push back.
    """

    def __init__(self, responder=None):
        self.responder = responder
        self.sent: list[dict] = []
        self.shut_down = False
        self._inbox: queue.Queue = queue.Queue()
        self._lock = threading.Lock()

    def send(self, data: str) -> None:
        if self.shut_down:
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        frame = json.loads(data)
        with self._lock:
            self.sent.append(frame)
        if self.responder is not None:
            for reply in self.responder(frame) or []:
                self.push(reply)

    def push(self, message) -> None:
        self._inbox.put(json.dumps(message) if isinstance(message, dict) else message)

    def recv(self) -> str:
        item = self._inbox.get()
        if item is _CLOSED:
            raise websocket.WebSocketConnectionClosedException("Connection to remote host was lost.")
        return item

    def drop(self) -> None:
        """Simulate the browser going away."""
        self._inbox.put(_CLOSED)

    def methods(self) -> list[str]:
        with self._lock:
            return [frame["method"] for frame in self.sent]

    def send_close(self) -> None:
        pass

    def abort(self) -> None:
        self._inbox.put(_CLOSED)

    def shutdown(self) -> None:
        self.shut_down = True


class FakeBrowser:
    """Answers the DevTools commands the render pipeline issues.

    Each attached session keeps its own document, and ``Page.printToPDF``
    returns a tiny "PDF" embedding that session's HTML, so tests can tell
    documents apart. Methods listed in ``errors`` are answered with an
    error object instead.
    """

    def __init__(self, errors: dict[str, dict] | None = None):
        self.errors = errors or {}
        self.documents: dict[str, str] = {}
        self.closed_targets: list[str] = []
        self.disposed_contexts: list[str] = []
        self._counter = itertools.count(1)

    def __call__(self, frame: dict) -> list[dict]:
        method = frame["method"]
        params = frame.get("params", {})
        if method in self.errors:
            return [{"id": frame["id"], "error": self.errors[method]}]
        handler = getattr(self, "_" + method.replace(".", "_"), None)
        result = handler(frame, params) if handler else {}
        return [{"id": frame["id"], "result": result}]

    def _Target_createBrowserContext(self, frame, params):
        return {"browserContextId": f"context-{next(self._counter)}"}

    def _Target_createTarget(self, frame, params):
        return {"targetId": f"target-{next(self._counter)}"}

    def _Target_attachToTarget(self, frame, params):
        session_id = f"session-{next(self._counter)}"
        self.documents[session_id] = ""
        return {"sessionId": session_id}

    def _Target_closeTarget(self, frame, params):
        self.closed_targets.append(params["targetId"])
        return {"success": True}

    def _Target_disposeBrowserContext(self, frame, params):
        self.disposed_contexts.append(params["browserContextId"])
        return {}

    def _Page_getFrameTree(self, frame, params):
        return {"frameTree": {"frame": {"id": f"frame-{frame['sessionId']}"}}}

    def _Page_setDocumentContent(self, frame, params):
        self.documents[frame["sessionId"]] = params["html"]
        return {}

    def _Page_printToPDF(self, frame, params):
        body = b"%PDF-1.4\n" + self.documents[frame["sessionId"]].encode("utf-8")
        return {"data": base64.b64encode(body).decode("ascii")}


@pytest.fixture
def fake_ws():
    return FakeWebSocket()


@pytest.fixture
def transport(fake_ws):
    t = CDPTransport(fake_ws, command_timeout=2.0, event_timeout=2.0)
    yield t
    t.close()


@pytest.fixture
def browser():
    return FakeBrowser()


@pytest.fixture
def browser_transport(browser):
    ws = FakeWebSocket(responder=browser)
    t = CDPTransport(ws, command_timeout=2.0, event_timeout=2.0)
    yield t
    t.close()
