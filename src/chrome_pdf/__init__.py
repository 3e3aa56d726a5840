"""HTML to PDF through headless Chrome's DevTools protocol.

Launches a private headless browser per conversion, loads the HTML into
an isolated page and prints it with ``Page.printToPDF``.
"""

from __future__ import annotations

from chrome_pdf.config import RenderConfig
from chrome_pdf.converter import convert_file, convert_to_pdf, count_pages
from chrome_pdf.exceptions import (
    BrowserConnectionError,
    BrowserNotFoundError,
    ChromePdfError,
    CommandTimeoutError,
    DecodeError,
    EventTimeoutError,
    LaunchTimeoutError,
    ProtocolError,
    classify_error,
)
from chrome_pdf.pipeline import PdfOptions
from chrome_pdf.version import __version__

__all__ = [
    "convert_to_pdf",
    "convert_file",
    "count_pages",
    "classify_error",
    "PdfOptions",
    "RenderConfig",
    "ChromePdfError",
    "BrowserNotFoundError",
    "LaunchTimeoutError",
    "BrowserConnectionError",
    "ProtocolError",
    "EventTimeoutError",
    "CommandTimeoutError",
    "DecodeError",
    "__version__",
]
