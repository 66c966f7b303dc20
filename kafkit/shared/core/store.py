"""JSON file persistence shared by the settings, connection and credential stores."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".kafkit"


def get_config_dir() -> Path:
    """Directory holding every kafkit file; ``KAFKIT_CONFIG_DIR`` wins when set."""
    override = os.environ.get("KAFKIT_CONFIG_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_DIR


class JSONFileStore:
    """A single JSON document on disk, readable by anyone and writable only atomically."""

    def __init__(self, file_path: Path):
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _read_json(self) -> Any:
        """Parsed file contents, or None when the file is missing or unreadable."""
        try:
            with open(self._file_path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as error:
            logger.warning("Ignoring unreadable %s: %s", self._file_path, error)
            return None

    def _read_object(self) -> dict[str, Any]:
        data = self._read_json()
        return data if isinstance(data, dict) else {}

    def _write_json(self, data: Any) -> None:
        """Replace the file with ``data``.

        The document is written to a sibling temp file, made owner-only (0600)
        and renamed over the target, so readers never observe a partial write.
        """
        directory = self._file_path.parent
        directory.mkdir(parents=True, exist_ok=True)
        try:
            os.chmod(directory, 0o700)
        except OSError:
            logger.debug("Could not restrict permissions on %s", directory)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self._file_path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
