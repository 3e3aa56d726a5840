"""Browser discovery and process supervision."""

from __future__ import annotations

from chrome_pdf.browser.locator import CHROME_PATHS, find_browser
from chrome_pdf.browser.process import LaunchedProcess, ProcessSupervisor

__all__ = [
    "CHROME_PATHS",
    "find_browser",
    "LaunchedProcess",
    "ProcessSupervisor",
]
