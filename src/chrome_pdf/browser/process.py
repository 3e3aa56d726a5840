"""Headless browser launch, endpoint discovery and guaranteed teardown."""

from __future__ import annotations

import logging
import random
import shutil
import subprocess
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from chrome_pdf.browser.locator import find_browser
from chrome_pdf.config import RenderConfig
from chrome_pdf.exceptions import BrowserNotFoundError, LaunchTimeoutError

logger = logging.getLogger(__name__)

VERSION_PATH = "/json/version"
DEBUGGER_URL_FIELD = "webSocketDebuggerUrl"


@dataclass
class LaunchedProcess:
    process: subprocess.Popen
    ws_endpoint: str
    port: int


def build_launch_args(browser: Path | str, port: int, user_data_dir: str) -> list[str]:
    """Command line for a headless, loopback-only debuggable browser."""
    return [
        str(browser),
        "--headless=new",
        "--disable-gpu",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-extensions",
        "--no-first-run",
        "--no-default-browser-check",
        f"--user-data-dir={user_data_dir}",
        f"--remote-debugging-port={port}",
        "--remote-debugging-address=127.0.0.1",
        "about:blank",
    ]


class ProcessSupervisor:
    """Owns exactly one browser process from launch to termination.

    Use as a context manager so the process is killed on every exit path::

        with ProcessSupervisor(config) as launched:
            ...  # talk to launched.ws_endpoint
    """

    def __init__(self, config: Optional[RenderConfig] = None) -> None:
        self.config = config or RenderConfig()
        self._launched: Optional[LaunchedProcess] = None
        self._process: Optional[subprocess.Popen] = None
        self._user_data_dir: Optional[str] = None
        self._stderr = None
        self._terminated = False

    def __enter__(self) -> LaunchedProcess:
        return self.launch()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()

    @property
    def launched(self) -> Optional[LaunchedProcess]:
        return self._launched

    def _pick_port(self) -> int:
        return random.randint(self.config.port_min, self.config.port_max)

    def launch(self) -> LaunchedProcess:
        """Spawn the browser and wait for its DevTools endpoint.

        Raises:
            BrowserNotFoundError: no executable located.
            LaunchTimeoutError: the endpoint never answered; the process
                has been killed before this propagates.
        """
        if self._process is not None:
            raise RuntimeError("ProcessSupervisor.launch() called twice")

        browser = find_browser(self.config.chrome_path)
        port = self._pick_port()
        self._user_data_dir = tempfile.mkdtemp(prefix="chrome-pdf-")
        args = build_launch_args(browser, port, self._user_data_dir)

        logger.info("Launching %s on debug port %d", browser, port)
        logger.debug("Launch args: %s", args)
        self._stderr = tempfile.TemporaryFile()
        try:
            self._process = subprocess.Popen(
                args,
                stdout=subprocess.DEVNULL,
                stderr=self._stderr,
            )
        except OSError as exc:
            self.terminate()
            raise BrowserNotFoundError(
                [str(browser)], f"Could not start {browser}: {exc}"
            ) from exc

        try:
            ws_endpoint = self._discover(port)
        except BaseException:
            self.terminate()
            raise

        self._launched = LaunchedProcess(self._process, ws_endpoint, port)
        logger.debug("DevTools endpoint: %s", ws_endpoint)
        return self._launched

    def _discover(self, port: int) -> str:
        """Poll /json/version until it advertises the debugger URL."""
        url = f"http://127.0.0.1:{port}{VERSION_PATH}"
        for attempt in range(self.config.poll_attempts):
            time.sleep(self.config.poll_interval)

            if self._process.poll() is not None:
                raise LaunchTimeoutError(
                    f"Browser exited with code {self._process.returncode} "
                    f"before exposing a debug endpoint{self._stderr_tail()}"
                )

            try:
                resp = httpx.get(url, timeout=self.config.poll_interval * 5)
                resp.raise_for_status()
                ws_endpoint = resp.json().get(DEBUGGER_URL_FIELD)
            except (httpx.HTTPError, ValueError):
                logger.debug("Endpoint not ready (attempt %d)", attempt + 1)
                continue

            if ws_endpoint:
                return ws_endpoint

        raise LaunchTimeoutError(
            f"Browser did not expose a debug endpoint on port {port} after "
            f"{self.config.poll_attempts} attempts. Is it installed correctly?"
        )

    def _stderr_tail(self) -> str:
        if self._stderr is None:
            return ""
        try:
            self._stderr.seek(0)
            data = self._stderr.read() or b""
        except (OSError, ValueError):
            return ""
        tail = data.decode("utf-8", "replace").strip()[-500:]
        return f": {tail}" if tail else ""

    def terminate(self) -> None:
        """Kill the browser and remove its profile. Safe to call repeatedly."""
        if self._terminated:
            return
        self._terminated = True

        process = self._process
        if process is not None:
            if process.poll() is None:
                process.kill()
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                logger.warning("Browser pid %d did not exit after kill", process.pid)
            else:
                logger.info("Browser pid %d terminated", process.pid)

        if self._stderr is not None:
            self._stderr.close()
        if self._user_data_dir:
            shutil.rmtree(self._user_data_dir, ignore_errors=True)
