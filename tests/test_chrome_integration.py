"""End-to-end conversions against a real headless Chrome.

Skipped when no browser can be located (set CHROME_PATH to run them).
"""

from __future__ import annotations

import io
import os

import pytest
from pypdf import PdfReader

from chrome_pdf import RenderConfig, convert_to_pdf
from chrome_pdf.browser.locator import find_browser
from chrome_pdf.exceptions import BrowserNotFoundError


def _browser_available() -> bool:
    try:
        find_browser(os.environ.get("CHROME_PATH"))
    except BrowserNotFoundError:
        return False
    return True


pytestmark = pytest.mark.skipif(not _browser_available(), reason="no Chrome/Chromium installed")

CONFIG = RenderConfig(chrome_path=os.environ.get("CHROME_PATH"), settle_seconds=0.5)

FIRST_DOC = """<!doctype html><html><body>
<h1>Alpha document</h1>
<script>
  window.name = "leaked-from-alpha";
  try { localStorage.setItem("marker", "leaked-from-alpha"); } catch (e) {}
</script>
</body></html>"""

SECOND_DOC = """<!doctype html><html><body>
<h1>Beta document</h1>
<p id="out"></p>
<script>
  var seen = window.name || "";
  try { seen = seen || localStorage.getItem("marker") || ""; } catch (e) {}
  document.getElementById("out").textContent = seen ? "state: " + seen : "state: clean";
</script>
</body></html>"""


def _text(pdf: bytes) -> str:
    return "\n".join(page.extract_text() for page in PdfReader(io.BytesIO(pdf)).pages)


class TestRealChrome:
    def test_output_is_pdf(self):
        pdf = convert_to_pdf("<p>Hello PDF</p>", config=CONFIG)
        assert pdf.startswith(b"%PDF-")
        assert "Hello PDF" in _text(pdf)

    def test_footer_page_numbers(self):
        pdf = convert_to_pdf("<p>Footer check</p>", config=CONFIG)
        assert "1 of 1" in _text(pdf)

    def test_sequential_documents_do_not_share_state(self):
        first = convert_to_pdf(FIRST_DOC, config=CONFIG)
        second = convert_to_pdf(SECOND_DOC, config=CONFIG)

        assert "Alpha document" in _text(first)
        second_text = _text(second)
        assert "Beta document" in second_text
        assert "state: clean" in second_text
        assert "Alpha" not in second_text

    def test_missing_override_fails_fast(self, tmp_path):
        config = RenderConfig(chrome_path=str(tmp_path / "no-such-chrome"))
        with pytest.raises(BrowserNotFoundError):
            convert_to_pdf("<p></p>", config=config)
