# SPDX-License-Identifier: MIT
"""Configuration reader for nodewatch.

Settings live in a JSON file and are looked up with dot-notation keys
("nodewatch.debounceMs"). A missing or unreadable file, or a missing key,
falls back to the built-in default.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from nodewatch.paths import PathResolver

DEFAULT_DEBOUNCE_MS = 100
DEFAULT_NAME_WIDTH = 25
DEFAULT_DISCONNECT_TIMEOUT_MS = 2000
DEFAULT_DEMO_LATENCY_MS = 50
DEFAULT_LOG_LEVEL = "INFO"


def get_settings_path() -> Path:
    """Get path to settings.json.

    Returns:
        Path to settings.json, respecting NODEWATCH_SETTINGS env var.
    """
    custom = os.environ.get("NODEWATCH_SETTINGS")
    if custom:
        return Path(custom)
    return PathResolver.config_dir() / "settings.json"


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value by dot-notation key.

    Args:
        key: Dot-notation key like "nodewatch.debounceMs"
        default: Default value if key not found

    Returns:
        Setting value or default
    """
    settings_path = get_settings_path()

    if not settings_path.exists():
        return default

    try:
        with open(settings_path) as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError):
        return default

    # Navigate dot-notation path
    parts = key.split(".")
    current = data
    for part in parts:
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]

    return current


def get_bool_setting(key: str, default: bool = False) -> bool:
    """Get a boolean setting.

    Args:
        key: Dot-notation key
        default: Default value if key not found

    Returns:
        Boolean value. Converts string "true", "1", "yes" to True.
    """
    value = get_setting(key, default)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes")
    return bool(value)


def get_int_setting(key: str, default: int = 0) -> int:
    """Get an integer setting.

    Args:
        key: Dot-notation key
        default: Default value if key not found or invalid

    Returns:
        Integer value or default if conversion fails.
    """
    value = get_setting(key, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_log_level(key: str = "nodewatch.logLevel", default: str = DEFAULT_LOG_LEVEL) -> int:
    """Get a logging level setting, accepting names ("debug") or numbers."""
    value = get_setting(key, default)
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    if isinstance(level, int):
        return level
    return logging.getLevelName(default)


@dataclass
class DashboardConfig:
    """Resolved dashboard settings."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    name_width: int = DEFAULT_NAME_WIDTH
    disconnect_timeout_ms: int = DEFAULT_DISCONNECT_TIMEOUT_MS
    demo_latency_ms: int = DEFAULT_DEMO_LATENCY_MS
    log_level: int = logging.INFO
    log_file: Optional[Path] = None

    @property
    def debounce_delay(self) -> float:
        return self.debounce_ms / 1000.0

    @property
    def disconnect_timeout(self) -> float:
        return self.disconnect_timeout_ms / 1000.0

    @property
    def demo_latency(self) -> float:
        return self.demo_latency_ms / 1000.0

    @classmethod
    def load(cls) -> "DashboardConfig":
        """Read every dashboard setting from settings.json."""
        log_file = PathResolver.log_file() if get_bool_setting("nodewatch.logFile") else None
        return cls(
            debounce_ms=max(get_int_setting("nodewatch.debounceMs", DEFAULT_DEBOUNCE_MS), 0),
            name_width=max(get_int_setting("nodewatch.nameWidth", DEFAULT_NAME_WIDTH), 1),
            disconnect_timeout_ms=max(
                get_int_setting("nodewatch.disconnectTimeoutMs", DEFAULT_DISCONNECT_TIMEOUT_MS), 0
            ),
            demo_latency_ms=max(
                get_int_setting("nodewatch.demoLatencyMs", DEFAULT_DEMO_LATENCY_MS), 0
            ),
            log_level=get_log_level(),
            log_file=log_file,
        )


def configure_file_logging(config: DashboardConfig) -> Optional[logging.Handler]:
    """Attach a FileHandler to the nodewatch logger when a log file is configured.

    Returns:
        The handler that was attached, or None.
    """
    if config.log_file is None:
        return None
    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(config.log_file)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logging.getLogger("nodewatch").addHandler(handler)
    return handler
