"""Configuration utilities for the field client."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://127.0.0.1:4000/v1"
DEFAULT_PAGE_LIMIT = 20
DEFAULT_RECENT_LIMIT = 6
DEFAULT_TIMEOUT = 15
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class AppConfig:
    """Runtime settings of the field client."""

    api_url: str = DEFAULT_API_URL
    api_token: Optional[str] = None
    page_limit: int = DEFAULT_PAGE_LIMIT
    recent_limit: int = DEFAULT_RECENT_LIMIT
    timeout_seconds: int = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL


def _positive_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s=%r is not a whole number, using %s", name, raw, default)
        return default
    if value < 1:
        logger.warning("%s=%r must be at least 1, using %s", name, raw, default)
        return default
    return value


def _log_level(raw: Optional[str]) -> str:
    level = (raw or "").strip().upper()
    if level in LOG_LEVELS:
        return level
    if level:
        logger.warning("Unknown log level %r, using %s", raw, DEFAULT_LOG_LEVEL)
    return DEFAULT_LOG_LEVEL


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """Load settings from the environment and an optional `.env` file.

    Malformed numbers and unknown log levels fall back to the defaults.
    """

    env_path = env_path or Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return AppConfig(
        api_url=(os.getenv("SITEMASTER_API_URL") or DEFAULT_API_URL).rstrip("/"),
        api_token=os.getenv("SITEMASTER_API_TOKEN") or None,
        page_limit=_positive_int("SITEMASTER_PAGE_LIMIT", DEFAULT_PAGE_LIMIT),
        recent_limit=_positive_int("SITEMASTER_RECENT_LIMIT", DEFAULT_RECENT_LIMIT),
        timeout_seconds=_positive_int("SITEMASTER_TIMEOUT", DEFAULT_TIMEOUT),
        log_level=_log_level(os.getenv("SITEMASTER_LOG_LEVEL")),
    )


__all__ = ["AppConfig", "LOG_LEVELS", "load_config"]
