"""Whitelist configuration management"""
import os
from pathlib import Path
from typing import Any, Optional

import toml  # type: ignore[import-untyped]

from .timer import DEFAULT_REFRESH_INTERVAL

URL_ENV_VAR = "REMOTE_WHITELIST_URL"
DEFAULT_TARGET = "whitelisted"


class WhitelistConfig:
    """Manage user configuration in ~/.remote-whitelist/config.toml"""

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = config_dir if config_dir is not None else Path.home() / ".remote-whitelist"
        self.config_file = self.config_dir / "config.toml"

    def _load(self) -> dict[str, Any]:
        if not self.config_file.exists():
            return {}
        try:
            config: dict[str, Any] = toml.load(self.config_file)
        except (toml.TomlDecodeError, OSError):
            return {}
        return config

    def _section(self) -> dict[str, Any]:
        section = self._load().get("whitelist")
        return section if isinstance(section, dict) else {}

    def _set(self, key: str, value: Any) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)

        config = self._load()
        section = config.get("whitelist")
        if not isinstance(section, dict):
            section = {}
            config["whitelist"] = section
        section[key] = value

        with open(self.config_file, "w", encoding="utf-8") as f:
            toml.dump(config, f)

    def get_url(self) -> str:
        """Get whitelist URL; the environment variable wins over the file."""
        env_url = os.environ.get(URL_ENV_VAR, "").strip()
        if env_url:
            return env_url
        url = self._section().get("url")
        return url if isinstance(url, str) else ""

    def set_url(self, url: str) -> None:
        self._set("url", url)

    def get_refresh_interval(self) -> float:
        """Get refresh interval in seconds"""
        value = self._section().get("refresh_interval")
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
        return DEFAULT_REFRESH_INTERVAL

    def set_refresh_interval(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError("Refresh interval must be positive")
        self._set("refresh_interval", float(seconds))

    def get_target(self) -> str:
        target = self._section().get("target")
        return target if isinstance(target, str) and target else DEFAULT_TARGET

    def set_target(self, target: str) -> None:
        self._set("target", target)
