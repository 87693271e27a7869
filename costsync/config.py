"""CostSync configuration management.

Loads configuration from environment variables with sensible defaults.
Every value is optional: a missing or malformed variable falls back to its
default instead of failing startup.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

MIN_REFRESH_INTERVAL_MS = 1000


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("false", "0", "no", "off")


def _env_float(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        number = float(value)
    except ValueError:
        return default
    return number if math.isfinite(number) else default


@dataclass
class SourceConfig:
    """Where cost records come from."""

    url: str = "costos.json"
    data_version: str | None = None  # first-request cache-busting token; later polls use current time
    timeout_seconds: float = 30.0
    local_file: Path | None = None  # enables the local picker when set


@dataclass
class RefreshConfig:
    """Auto-refresh polling cadence."""

    enabled: bool = True
    interval_ms: int = 5000
    initial_delay_ms: int = 1000

    def __post_init__(self):
        if self.interval_ms < MIN_REFRESH_INTERVAL_MS:
            self.interval_ms = MIN_REFRESH_INTERVAL_MS


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    json_logs: bool = False
    source: SourceConfig = field(default_factory=SourceConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Optional (with defaults):
        - COSTSYNC_SOURCE_URL: Remote record endpoint (default: "costos.json")
        - COSTSYNC_DATA_VERSION: Fixed cache-busting token
        - COSTSYNC_HTTP_TIMEOUT: Fetch timeout in seconds (default: 30)
        - COSTSYNC_LOCAL_FILE: JSON file offered by the local picker
        - COSTSYNC_AUTO_REFRESH_ENABLED: Poll for changes (default: true)
        - COSTSYNC_AUTO_REFRESH_INTERVAL: Poll interval in ms, ignored below 1000
        - COSTSYNC_INITIAL_CHECK_DELAY: Delay before first poll in ms (default: 1000)
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - JSON_LOGS: Render log events as JSON (default: false)
        """
        interval = _env_float("COSTSYNC_AUTO_REFRESH_INTERVAL", None)
        if interval is None or interval < MIN_REFRESH_INTERVAL_MS:
            interval = 5000

        initial_delay = _env_float("COSTSYNC_INITIAL_CHECK_DELAY", 1000)
        if initial_delay is None or initial_delay < 0:
            initial_delay = 1000

        local_file = os.getenv("COSTSYNC_LOCAL_FILE")

        return cls(
            log_level=os.getenv("LOG_LEVEL") or "INFO",
            json_logs=_env_bool("JSON_LOGS", False),
            source=SourceConfig(
                url=os.getenv("COSTSYNC_SOURCE_URL") or "costos.json",
                data_version=os.getenv("COSTSYNC_DATA_VERSION") or None,
                timeout_seconds=_env_float("COSTSYNC_HTTP_TIMEOUT", 30.0) or 30.0,
                local_file=Path(local_file) if local_file else None,
            ),
            refresh=RefreshConfig(
                enabled=_env_bool("COSTSYNC_AUTO_REFRESH_ENABLED", True),
                interval_ms=int(interval),
                initial_delay_ms=int(initial_delay),
            ),
        )


# Cached instance for the CLI entry point (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the cached AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config
