"""Command-line entry point: ``chrome-pdf page.html -o page.pdf``."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from chrome_pdf.config import RenderConfig
from chrome_pdf.converter import convert_to_pdf, count_pages
from chrome_pdf.exceptions import ChromePdfError, classify_error
from chrome_pdf.version import __version__

logger = logging.getLogger(__name__)

_GUIDANCE = {
    "missing": "Install Google Chrome or Chromium, or set CHROME_PATH.",
    "unreachable": "The browser could not be reached; try again.",
    "rejected": "The browser rejected a command while printing.",
    "timeout": "The browser took too long to respond; try again.",
}


def is_debug() -> bool:
    """Check if DEBUG is enabled via environment / .env."""
    return os.environ.get("DEBUG", "").lower() in ("1", "true")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chrome-pdf",
        description="Convert a self-contained HTML file to PDF with headless Chrome.",
    )
    parser.add_argument("input", type=Path, help="HTML file to convert")
    parser.add_argument(
        "-o", "--output", type=Path,
        help="PDF to write (default: input path with .pdf suffix)",
    )
    parser.add_argument(
        "--settle", type=float, metavar="SECONDS",
        help="wait this long for images to load before printing",
    )
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = RenderConfig.from_env()  # loads .env before DEBUG is read
    if args.settle is not None:
        config.settle_seconds = args.settle

    logging.basicConfig(
        level=logging.DEBUG if args.debug or is_debug() else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    output = (args.output or args.input).with_suffix(".pdf")
    try:
        pdf = convert_to_pdf(args.input.read_bytes(), config=config)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(pdf)
    except OSError as exc:
        logger.error("%s", exc)
        return 1
    except ChromePdfError as exc:
        logger.error("Conversion failed: %s", exc)
        guidance = _GUIDANCE.get(classify_error(exc))
        if guidance:
            print(guidance, file=sys.stderr)
        return 1

    pages = count_pages(pdf)
    suffix = f" ({pages} pages)" if pages is not None else ""
    print(f"{output}{suffix}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
