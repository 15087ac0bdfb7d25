"""Local JSON file store used when the primary database is unavailable."""

import json
import os
import threading
from pathlib import Path
from typing import Any

from leadcapture_common.db_models import utcnow
from leadcapture_common.logging import setup_logging

from exceptions import PersistenceUnavailableError
from infrastructure.interfaces import CallStore

logger = setup_logging()


class JsonFileCallStore(CallStore):
    """
    Stores call records in a single JSON object keyed by call id.

    Every write reads the file, merges the supplied fields into the
    existing entry and atomically replaces the file.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    def upsert(self, call_id: str, fields: dict[str, Any]) -> None:
        now = utcnow().isoformat()
        with self._lock:
            records = self._read(call_id)
            entry = {**records.get(call_id, {}), **fields, "call_id": call_id, "updated_at": now}
            entry.setdefault("created_at", now)
            records[call_id] = entry
            self._write(call_id, records)
        logger.info("Call record written to fallback file", extra={"call_id": call_id})

    def get(self, call_id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._read(call_id).get(call_id)

    def list_records(
        self, needs_review: bool | None = None, limit: int = 100
    ) -> list[dict[str, Any]]:
        with self._lock:
            records = list(self._read("*").values())
        if needs_review is not None:
            records = [r for r in records if bool(r.get("needs_review")) == needs_review]
        records.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return records[:limit]

    def entries(self) -> dict[str, dict[str, Any]]:
        """Returns a snapshot of every stored record."""
        with self._lock:
            return self._read("*")

    def remove(self, call_id: str) -> bool:
        """Deletes one record. Returns False if it was not present."""
        with self._lock:
            records = self._read(call_id)
            if records.pop(call_id, None) is None:
                return False
            self._write(call_id, records)
            return True

    def _read(self, call_id: str) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        try:
            return json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            logger.exception("Fallback file unreadable", extra={"path": str(self._path)})
            raise PersistenceUnavailableError(call_id, "fallback read", cause=e) from e

    def _write(self, call_id: str, records: dict[str, dict[str, Any]]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.exception("Fallback file write failed", extra={"path": str(self._path)})
            raise PersistenceUnavailableError(call_id, "fallback write", cause=e) from e
