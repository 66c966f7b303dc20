"""Settings store for managing application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from kafkit.shared.core.store import JSONFileStore, get_config_dir

DEFAULT_SIDECAR_URL = "http://127.0.0.1:26636"


def _resolve_settings_path() -> Path:
    override = os.environ.get("KAFKIT_SETTINGS_PATH", "").strip()
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "settings.json"


class SettingsStore(JSONFileStore):
    """Store for managing application settings.

    Settings are stored as a JSON object in ~/.kafkit/settings.json
    """

    def __init__(self, file_path: Path | None = None) -> None:
        super().__init__(file_path or _resolve_settings_path())

    @classmethod
    def get_instance(cls) -> SettingsStore:
        """Get the singleton instance."""
        return _get_store()

    def load_all(self) -> dict[str, Any]:
        """Load all settings.

        Returns:
            Dictionary of settings, or empty dict if none exist.
        """
        return self._read_object()

    def save_all(self, settings: dict[str, Any]) -> None:
        self._write_json(settings)

    def get(self, key: str, default: Any = None) -> Any:
        return self.load_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        settings = self.load_all()
        settings[key] = value
        self.save_all(settings)

    def delete(self, key: str) -> bool:
        """Delete a specific setting.

        Returns:
            True if key existed and was deleted, False otherwise.
        """
        settings = self.load_all()
        if key in settings:
            del settings[key]
            self.save_all(settings)
            return True
        return False


_store: SettingsStore | None = None
_store_path: Path | None = None


def _get_store() -> SettingsStore:
    global _store, _store_path
    path = _resolve_settings_path()
    if _store is None or _store_path != path:
        _store = SettingsStore(file_path=path)
        _store_path = path
    return _store


def load_settings() -> dict:
    """Load app settings from config file."""
    return _get_store().load_all()


def save_settings(settings: dict) -> None:
    """Save app settings to config file."""
    _get_store().save_all(settings)


@dataclass
class RuntimeSettings:
    """Effective settings: defaults, overlaid by settings.json, overlaid by environment."""

    sidecar_url: str = DEFAULT_SIDECAR_URL
    request_timeout_s: float = 10.0
    container_load_timeout_ms: int = 10_000
    schema_rbac_warnings_enabled: bool = True
    log_level: str = "WARNING"

    @classmethod
    def load(cls, settings: dict[str, Any] | None = None) -> RuntimeSettings:
        raw = load_settings() if settings is None else settings
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in raw or raw[f.name] is None:
                continue
            value = raw[f.name]
            default = f.default
            try:
                if isinstance(default, bool):
                    values[f.name] = bool(value)
                elif isinstance(default, int):
                    values[f.name] = int(value)
                elif isinstance(default, float):
                    values[f.name] = float(value)
                else:
                    values[f.name] = str(value)
            except (TypeError, ValueError):
                continue

        env_url = os.environ.get("KAFKIT_SIDECAR_URL", "").strip()
        if env_url:
            values["sidecar_url"] = env_url
        env_level = os.environ.get("KAFKIT_LOG_LEVEL", "").strip()
        if env_level:
            values["log_level"] = env_level
        return cls(**values)
