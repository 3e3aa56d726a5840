"""Minimal Chrome DevTools Protocol client: transport and page sessions."""

from __future__ import annotations

from chrome_pdf.cdp.session import RenderSession
from chrome_pdf.cdp.transport import CDPTransport, EventWaiter

__all__ = ["CDPTransport", "EventWaiter", "RenderSession"]
