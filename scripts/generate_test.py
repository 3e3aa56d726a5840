"""
Render a sample document to check a local Chrome install end to end.

Usage:
    source venv/bin/activate
    python scripts/generate_test.py

Produces output/sample.pdf. Open it and check the background colour,
the embedded image and the "N of M" footer on every page.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from chrome_pdf import RenderConfig, classify_error, convert_to_pdf, count_pages
from chrome_pdf.exceptions import ChromePdfError

OUTPUT_DIR = Path(__file__).resolve().parents[1] / "output"

# 1x1 teal pixel, inline so the sample has no network dependency.
PIXEL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

SECTIONS = "\n".join(
    f"<h2>Section {n}</h2><p>{'Lorem ipsum dolor sit amet. ' * 40}</p>"
    for n in range(1, 9)
)

SAMPLE_HTML = f"""<!doctype html>
<html>
<head>
<meta charset="utf-8">
<style>
  body {{ font-family: Georgia, serif; background: #f4f1ea; }}
  h1 {{ background: #2a6f6f; color: white; padding: 0.3em; }}
  img {{ width: 1in; height: 1in; }}
</style>
</head>
<body>
<h1>chrome-pdf sample</h1>
<img src="{PIXEL}" alt="pixel">
{SECTIONS}
</body>
</html>
"""


def main() -> int:
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    out = OUTPUT_DIR / "sample.pdf"

    try:
        pdf = convert_to_pdf(SAMPLE_HTML, config=RenderConfig.from_env())
    except ChromePdfError as exc:
        print(f"FAILED ({classify_error(exc)}): {exc}")
        return 1

    out.write_bytes(pdf)
    print(f"Wrote {out} ({count_pages(pdf)} pages, {len(pdf)} bytes)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
