"""JSON-file-backed key-value storage on local disk."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from nutri_help.services.profiles import KeyValueStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileStore(KeyValueStore):
    """Stores text values in a single JSON object file."""

    path: Path

    def get(self, key: str) -> str | None:
        """Return the stored text for a key, if present."""
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store text under a key, replacing any previous value."""
        entries = self._read()
        entries[key] = value
        self._write(entries)

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        entries = self._read()
        if entries.pop(key, None) is not None:
            self._write(entries)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            _logger.warning("Storage file unreadable, treating as empty: %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, entries: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
