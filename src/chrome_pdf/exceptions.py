"""Custom exception hierarchy for chrome_pdf."""

from __future__ import annotations


class ChromePdfError(Exception):
    """Base exception for all chrome_pdf errors."""


class BrowserNotFoundError(ChromePdfError):
    """No Chrome/Chromium executable could be located."""

    def __init__(self, searched: list[str], message: str | None = None):
        self.searched = list(searched)
        if message is None:
            message = (
                "Chrome/Chromium not found. Install Google Chrome or set "
                "CHROME_PATH.\nSearched: " + ", ".join(self.searched)
            )
        super().__init__(message)


class LaunchTimeoutError(ChromePdfError):
    """The browser never exposed a reachable debug endpoint.

    The spawned process has already been killed when this is raised.
    """


class BrowserConnectionError(ChromePdfError):
    """The DevTools WebSocket could not be opened, or dropped mid-call."""


class SessionClosedError(BrowserConnectionError):
    """A command was issued on a session that was already closed."""


class ProtocolError(ChromePdfError):
    """The browser answered a command with an error object."""

    def __init__(self, method: str, message: str, code: int | None = None):
        self.method = method
        self.message = message
        self.code = code
        suffix = f" (code {code})" if code is not None else ""
        super().__init__(f"CDP {method}: {message}{suffix}")


class EventTimeoutError(ChromePdfError):
    """An expected protocol message did not arrive within its window."""


class CommandTimeoutError(EventTimeoutError):
    """No response arrived for a command within the round-trip timeout."""


class DecodeError(ChromePdfError):
    """Input HTML or the printed payload could not be decoded."""


def classify_error(error: Exception) -> str:
    """Classify an exception for user-facing guidance.

    ``missing`` means install a browser, ``unreachable`` and ``timeout``
    are usually worth a retry, ``rejected`` means the browser refused a
    command.
    """
    if isinstance(error, BrowserNotFoundError):
        return "missing"
    if isinstance(error, (LaunchTimeoutError, BrowserConnectionError)):
        return "unreachable"
    if isinstance(error, ProtocolError):
        return "rejected"
    if isinstance(error, EventTimeoutError):
        return "timeout"
    return "internal"
