"""Top-level HTML to PDF conversion.

Each call launches its own browser, connects, prints one document and
kills the browser again, whatever happens in between.
"""

from __future__ import annotations

import io
import logging
import time
from pathlib import Path
from typing import Optional

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from chrome_pdf.browser.process import ProcessSupervisor
from chrome_pdf.cdp.transport import CDPTransport
from chrome_pdf.config import RenderConfig
from chrome_pdf.pipeline import PdfOptions, RenderPipeline, decode_html

logger = logging.getLogger(__name__)


def convert_to_pdf(
    html: str | bytes,
    *,
    config: Optional[RenderConfig] = None,
    options: Optional[PdfOptions] = None,
) -> bytes:
    """Render a self-contained HTML document to PDF bytes.

    Args:
        html: Complete HTML document.
        config: Timeouts, settle window and browser override. Read from
            the environment when omitted.
        options: Page size, margins and footer styling.

    Returns:
        The PDF file contents.

    Raises:
        BrowserNotFoundError, LaunchTimeoutError, BrowserConnectionError,
        ProtocolError, EventTimeoutError, DecodeError.
    """
    html = decode_html(html)
    config = config or RenderConfig.from_env()
    start = time.monotonic()

    with ProcessSupervisor(config) as launched:
        with CDPTransport.connect(
            launched.ws_endpoint,
            connect_timeout=config.connect_timeout,
            command_timeout=config.command_timeout,
            event_timeout=config.event_timeout,
        ) as transport:
            pdf = RenderPipeline(transport, config, options).generate(html)

    logger.info("Rendered PDF (%d bytes) in %.1fs", len(pdf), time.monotonic() - start)
    return pdf


def convert_file(
    html_path: Path,
    output_path: Optional[Path] = None,
    *,
    config: Optional[RenderConfig] = None,
    options: Optional[PdfOptions] = None,
) -> Path:
    """Convert an HTML file and write the PDF next to it (or to *output_path*).

    The output suffix is forced to ``.pdf``.
    """
    html_path = Path(html_path)
    output_path = Path(output_path or html_path).with_suffix(".pdf")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pdf = convert_to_pdf(html_path.read_bytes(), config=config, options=options)
    output_path.write_bytes(pdf)
    logger.info("Saved %s", output_path)
    return output_path


def count_pages(pdf: bytes) -> int | None:
    """Count pages in PDF bytes. Returns None on failure."""
    try:
        return len(PdfReader(io.BytesIO(pdf)).pages)
    except (PdfReadError, OSError, ValueError):
        logger.warning("Could not count pages in rendered PDF")
        return None
