"""Locate an installed Chrome-family browser executable."""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Optional

from chrome_pdf.exceptions import BrowserNotFoundError

logger = logging.getLogger(__name__)

# Ordered by preference; first existing path wins.
CHROME_PATHS: dict[str, list[str]] = {
    "Darwin": [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Google Chrome Canary.app/Contents/MacOS/Google Chrome Canary",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
        "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
        "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser",
    ],
    "Linux": [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
        "/snap/bin/chromium",
        "/usr/bin/microsoft-edge",
        "/usr/bin/brave-browser",
    ],
    "Windows": [
        "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
        "C:\\Program Files\\Microsoft\\Edge\\Application\\msedge.exe",
        "C:\\Program Files\\BraveSoftware\\Brave-Browser\\Application\\brave.exe",
    ],
}


def find_browser(override: Optional[str] = None) -> Path:
    """Return the path of the browser executable to launch.

    An explicit *override* (usually ``CHROME_PATH``) is used instead of the
    built-in list. It must exist: a stale override fails immediately rather
    than quietly launching some other browser.

    Raises:
        BrowserNotFoundError: nothing usable was found. ``searched`` holds
            every path that was checked.
    """
    if override:
        path = Path(override)
        if not path.exists():
            raise BrowserNotFoundError(
                [override],
                f"CHROME_PATH points to {override}, which does not exist",
            )
        logger.debug("Using browser override %s", path)
        return path

    candidates = CHROME_PATHS.get(platform.system(), [])
    for candidate in candidates:
        if os.path.exists(candidate):
            logger.debug("Found browser at %s", candidate)
            return Path(candidate)

    raise BrowserNotFoundError(candidates)
