from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)


@dataclass
class JsonKeyValueStore:
    """Load and persist top-level keys of a single JSON document."""

    path: Path
    _data: Dict[str, Any] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self.path = Path(self.path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.reload()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def data(self) -> Dict[str, Any]:
        return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        new_data = dict(self._data)
        new_data[key] = value
        self._persist(new_data)
        self._data = new_data

    def delete(self, key: str) -> None:
        if key not in self._data:
            return
        new_data = dict(self._data)
        del new_data[key]
        self._persist(new_data)
        self._data = new_data

    def reload(self) -> None:
        self._data = self._load_json(self.path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _persist(self, payload: Dict[str, Any]) -> None:
        # Write to a sibling file first so a crash never leaves half a document behind.
        staging_path = self.path.with_name(self.path.name + ".tmp")
        with staging_path.open("w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
        staging_path.replace(self.path)

    @staticmethod
    def _load_json(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}

        # OSError propagates: an unreadable file is not proof the content is bad.
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except ValueError as exc:
            payload = None
            logger.warning("Could not parse %s: %s", path, exc)

        if isinstance(payload, dict):
            return payload

        backup_path = path.with_name(path.name + ".corrupt")
        path.replace(backup_path)
        logger.warning("Moved unreadable store %s aside to %s and started empty", path, backup_path)
        return {}
