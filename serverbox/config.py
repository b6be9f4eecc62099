from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
import json
import logging
import os

logger = logging.getLogger(__name__)

HOME_ENV = "SERVERBOX_HOME"
JAVA_ENV = "SERVERBOX_JAVA"
LOG_LEVEL_ENV = "SERVERBOX_LOG_LEVEL"
INDEX_FILENAME = "servers.json"
SETTINGS_FILENAME = "settings.json"


def default_home() -> Path:
    override = os.environ.get(HOME_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".serverbox"


@dataclass(slots=True)
class Settings:
    home: Path
    java_path: str = "java"
    timeout_seconds: int = 30
    log_level: str = "INFO"

    @property
    def index_path(self) -> Path:
        return self.home / INDEX_FILENAME

    @property
    def settings_path(self) -> Path:
        return self.home / SETTINGS_FILENAME

    @classmethod
    def load(cls, home: str | Path | None = None) -> Settings:
        settings = cls(home=Path(home).expanduser() if home else default_home())
        settings._apply(_read_settings_file(settings.settings_path))
        java = os.environ.get(JAVA_ENV, "").strip()
        if java:
            settings.java_path = java
        level = os.environ.get(LOG_LEVEL_ENV, "").strip()
        if level:
            settings.log_level = level.upper()
        return settings

    def _apply(self, payload: Mapping[str, Any]) -> None:
        if payload.get("java_path"):
            self.java_path = str(payload["java_path"])
        if payload.get("timeout_seconds") is not None:
            try:
                self.timeout_seconds = int(payload["timeout_seconds"])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid timeout_seconds=%r", payload["timeout_seconds"])
        if payload.get("log_level"):
            self.log_level = str(payload["log_level"]).upper()


def _read_settings_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if isinstance(payload, dict):
        return payload
    return {}
