from __future__ import annotations

import logging
from typing import Any, Iterable

from attendance_ledger.data.json_store import JsonKeyValueStore
from attendance_ledger.models import AttendanceRecord

logger = logging.getLogger(__name__)

LEDGER_KEY = "attendance"
SNAPSHOT_VERSION = 1


class CorruptedLedgerError(RuntimeError):
    """Raised when the persisted attendance snapshot cannot be interpreted."""


class LedgerStore:
    def __init__(self, store: JsonKeyValueStore, *, key: str = LEDGER_KEY) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> list[AttendanceRecord]:
        snapshot = self._store.get(self._key)
        if snapshot is None:
            return []

        if not isinstance(snapshot, dict):
            raise CorruptedLedgerError(f"Snapshot under {self._key!r} is not an object.")

        version = snapshot.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise CorruptedLedgerError(f"Unsupported snapshot version: {version!r}")

        raw_records = snapshot.get("records", [])
        if not isinstance(raw_records, list):
            raise CorruptedLedgerError("Snapshot records must be a list.")

        try:
            records = [AttendanceRecord.from_dict(item) for item in raw_records]
        except (KeyError, TypeError) as exc:
            raise CorruptedLedgerError(f"Malformed attendance record: {exc}") from exc

        logger.debug("Loaded %d attendance records", len(records))
        return records

    def save(self, records: Iterable[AttendanceRecord]) -> None:
        payload: dict[str, Any] = {
            "version": SNAPSHOT_VERSION,
            "records": [record.to_dict() for record in records],
        }
        self._store.set(self._key, payload)
