"""A single isolated page, multiplexed over the shared transport."""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING, Optional

from chrome_pdf.exceptions import ChromePdfError, ProtocolError, SessionClosedError

if TYPE_CHECKING:
    from chrome_pdf.cdp.transport import CDPTransport, EventWaiter

logger = logging.getLogger(__name__)


def _require(result: dict, key: str, method: str) -> str:
    value = result.get(key)
    if not value:
        raise ProtocolError(method, f"malformed response: missing {key}")
    return value


class RenderSession:
    """Flat-mode session attached to a page in its own browser context.

    Every command carries ``sessionId`` and every event wait filters on
    it, so traffic from other targets is never observed here. The
    session only holds a weak reference to its transport.
    """

    def __init__(self, transport: CDPTransport) -> None:
        self._transport_ref = weakref.ref(transport)
        self.browser_context_id: Optional[str] = None
        self.target_id: Optional[str] = None
        self.session_id: Optional[str] = None
        self._closed = False

    @classmethod
    def open(cls, transport: CDPTransport) -> RenderSession:
        """Create a fresh browser context and page and attach to it."""
        session = cls(transport)
        try:
            session._attach(transport)
        except BaseException:
            session.discard()
            raise
        return session

    def _attach(self, transport: CDPTransport) -> None:
        result = transport.call("Target.createBrowserContext", {"disposeOnDetach": True})
        self.browser_context_id = result.get("browserContextId")

        result = transport.call(
            "Target.createTarget",
            {"url": "about:blank", "browserContextId": self.browser_context_id},
        )
        self.target_id = _require(result, "targetId", "Target.createTarget")

        result = transport.call(
            "Target.attachToTarget", {"targetId": self.target_id, "flatten": True}
        )
        self.session_id = _require(result, "sessionId", "Target.attachToTarget")
        logger.debug("Attached session %s to target %s", self.session_id, self.target_id)

    @property
    def closed(self) -> bool:
        return self._closed

    def _transport(self) -> CDPTransport:
        if self._closed:
            raise SessionClosedError("Render session is closed")
        transport = self._transport_ref()
        if transport is None:
            raise SessionClosedError("Render session outlived its transport")
        return transport

    def send(
        self, method: str, params: Optional[dict] = None, timeout: Optional[float] = None
    ) -> dict:
        """Run a command on this page and return its result."""
        return self._transport().call(method, params, self.session_id, timeout)

    def expect_event(self, event: str) -> EventWaiter:
        return self._transport().expect_event(event, self.session_id)

    def wait_for_event(self, event: str, timeout: Optional[float] = None) -> dict:
        return self.expect_event(event).wait(timeout)

    def close(self) -> None:
        """Close the page and dispose its context. A second call does nothing."""
        if self._closed:
            return
        self._closed = True

        transport = self._transport_ref()
        if transport is None or transport.closed:
            return
        if self.target_id:
            transport.call("Target.closeTarget", {"targetId": self.target_id})
        if self.browser_context_id:
            transport.call(
                "Target.disposeBrowserContext",
                {"browserContextId": self.browser_context_id},
            )
        logger.debug("Closed session %s", self.session_id)

    def discard(self) -> None:
        """Close while another error is already propagating."""
        try:
            self.close()
        except ChromePdfError:
            logger.warning("Could not close render session cleanly", exc_info=True)
