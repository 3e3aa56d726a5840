"""The fixed DevTools call sequence that turns HTML into PDF bytes."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from jinja2 import Environment, FileSystemLoader

from chrome_pdf.cdp.session import RenderSession
from chrome_pdf.config import RenderConfig
from chrome_pdf.exceptions import DecodeError, ProtocolError

if TYPE_CHECKING:
    from chrome_pdf.cdp.transport import CDPTransport

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

PDF_SIGNATURE = b"%PDF-"

_env: Optional[Environment] = None


def _jinja_env() -> Environment:
    global _env
    if _env is None:
        _env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), autoescape=True)
    return _env


@dataclass
class PdfOptions:
    """Page geometry for ``Page.printToPDF``. Lengths are in inches."""

    paper_width: float = 8.5
    paper_height: float = 11.0
    margin_top: float = 0.75
    margin_right: float = 0.75
    margin_bottom: float = 1.0          # room for the page footer
    margin_left: float = 0.75
    print_background: bool = True
    footer_font_family: str = "Inter, Helvetica, Arial, sans-serif"
    footer_font_size: str = "9px"
    footer_color: str = "#aaa"
    footer_offset: str = "0.2in"

    def header_template(self) -> str:
        return _jinja_env().get_template("header.html").render()

    def footer_template(self) -> str:
        """Footer reading "N of M", filled in by Chrome per page."""
        return _jinja_env().get_template("footer.html").render(
            font_family=self.footer_font_family,
            font_size=self.footer_font_size,
            color=self.footer_color,
            offset=self.footer_offset,
        )

    def to_params(self) -> dict:
        return {
            "printBackground": self.print_background,
            "paperWidth": self.paper_width,
            "paperHeight": self.paper_height,
            "marginTop": self.margin_top,
            "marginRight": self.margin_right,
            "marginBottom": self.margin_bottom,
            "marginLeft": self.margin_left,
            "displayHeaderFooter": True,
            "headerTemplate": self.header_template(),
            "footerTemplate": self.footer_template(),
        }


def decode_html(html: str | bytes) -> str:
    """Return *html* as text. Byte input must be UTF-8."""
    if isinstance(html, str):
        return html
    try:
        return html.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(
            f"HTML input is not valid UTF-8 at byte {exc.start}: {exc.reason}"
        ) from exc


def decode_pdf(result: dict) -> bytes:
    """Decode the base64 ``data`` field of a printToPDF result."""
    data = result.get("data") if isinstance(result, dict) else None
    if not isinstance(data, str) or not data:
        raise DecodeError("Page.printToPDF returned no data")
    try:
        pdf = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"PDF payload is not valid base64: {exc}") from exc
    if not pdf.startswith(PDF_SIGNATURE):
        raise DecodeError(f"Decoded payload is not a PDF (starts with {pdf[:8]!r})")
    return pdf


class RenderPipeline:
    """Loads one HTML document into a fresh page and prints it.

    Each ``generate`` call opens its own session, so nothing loaded by
    one document (scripts, timers, storage) is visible to the next. No
    step is retried; a failure aborts with that step's error.
    """

    def __init__(
        self,
        transport: CDPTransport,
        config: Optional[RenderConfig] = None,
        options: Optional[PdfOptions] = None,
    ) -> None:
        self.transport = transport
        self.config = config or RenderConfig()
        self.options = options or PdfOptions()

    def generate(self, html: str | bytes) -> bytes:
        html = decode_html(html)
        session = RenderSession.open(self.transport)
        try:
            pdf = self._render(session, html)
        except BaseException:
            session.discard()
            raise
        session.close()
        return pdf

    def _render(self, session: RenderSession, html: str) -> bytes:
        session.send("Page.enable")
        session.send("Network.enable")

        frame_tree = session.send("Page.getFrameTree")
        try:
            frame_id = frame_tree["frameTree"]["frame"]["id"]
        except (KeyError, TypeError):
            raise ProtocolError(
                "Page.getFrameTree", "malformed response: no main frame id"
            ) from None

        session.send("Page.setDocumentContent", {"frameId": frame_id, "html": html})

        # Approximation: a fixed window for images and other subresources.
        logger.debug("Settling for %.1fs", self.config.settle_seconds)
        time.sleep(self.config.settle_seconds)

        session.send("Emulation.setEmulatedMedia", {"media": "screen"})

        result = session.send("Page.printToPDF", self.options.to_params())
        pdf = decode_pdf(result)
        logger.debug("Printed %d bytes", len(pdf))
        return pdf
