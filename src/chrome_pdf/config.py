"""Runtime settings for a conversion."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

CHROME_PATH_ENV = "CHROME_PATH"
SETTLE_ENV = "CHROME_PDF_SETTLE_SECONDS"
COMMAND_TIMEOUT_ENV = "CHROME_PDF_COMMAND_TIMEOUT"


@dataclass
class RenderConfig:
    chrome_path: str | None = None      # explicit override, trusted as-is
    port_min: int = 9222
    port_max: int = 10221               # inclusive
    poll_interval: float = 0.2          # seconds between /json/version polls
    poll_attempts: int = 30
    connect_timeout: float = 10.0
    command_timeout: float = 30.0
    event_timeout: float = 30.0
    settle_seconds: float = 2.0         # fixed wait for images/subresources

    @classmethod
    def from_env(cls) -> RenderConfig:
        """Build a config from the environment (and a .env file if present)."""
        from dotenv import load_dotenv

        load_dotenv()
        config = cls(chrome_path=os.getenv(CHROME_PATH_ENV) or None)
        config.settle_seconds = _float_env(SETTLE_ENV, config.settle_seconds)
        config.command_timeout = _float_env(COMMAND_TIMEOUT_ENV, config.command_timeout)
        return config


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default
