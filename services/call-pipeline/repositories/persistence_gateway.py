"""Call record persistence with a local file fallback."""

import asyncio
from typing import Any

from leadcapture_common.logging import setup_logging
from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from domain.models import CallRecord
from exceptions import PersistenceUnavailableError
from infrastructure.interfaces import CallStore
from infrastructure.json_file_store import JsonFileCallStore

logger = setup_logging()


class ReconciliationReport(BaseModel):
    migrated: list[str]
    failed: list[str]


class PersistenceGateway:
    """
    Single write path for call records.

    Writes go to the primary store. Any primary failure redirects the
    write, without retrying, to the fallback file. Reads prefer the
    primary and fall back on error or when the key is missing there.
    The two stores are only synchronised by an explicit reconcile().
    """

    def __init__(self, primary: CallStore, fallback: JsonFileCallStore):
        self._primary = primary
        self._fallback = fallback

    async def upsert(self, call_id: str, fields: dict[str, Any]) -> None:
        """
        Inserts or updates the supplied fields of a call record.

        Args:
            call_id: Unique call id.
            fields: Column values; models and dates are converted to JSON types.

        Raises:
            PersistenceUnavailableError: Only if the fallback also fails.
        """
        payload = to_jsonable_python(fields)
        try:
            await asyncio.to_thread(self._primary.upsert, call_id, payload)
        except PersistenceUnavailableError:
            logger.warning(
                "Primary store unavailable, writing to fallback",
                extra={"call_id": call_id},
            )
            await asyncio.to_thread(self._fallback.upsert, call_id, payload)

    async def get(self, call_id: str) -> CallRecord | None:
        try:
            data = await asyncio.to_thread(self._primary.get, call_id)
        except PersistenceUnavailableError:
            logger.warning("Primary store unavailable, reading fallback", extra={"call_id": call_id})
            data = None
        if data is None:
            data = await asyncio.to_thread(self._fallback.get, call_id)
        return CallRecord.model_validate(data) if data else None

    async def list_records(
        self, needs_review: bool | None = None, limit: int = 100
    ) -> list[CallRecord]:
        """Lists call records newest first, optionally only those needing review."""
        try:
            rows = await asyncio.to_thread(self._primary.list_records, needs_review, limit)
        except PersistenceUnavailableError:
            logger.warning("Primary store unavailable, listing fallback")
            rows = await asyncio.to_thread(self._fallback.list_records, needs_review, limit)
        return [CallRecord.model_validate(row) for row in rows]

    async def reconcile(self) -> ReconciliationReport:
        """
        Migrates every fallback entry into the primary store.

        Each entry is removed from the fallback file once the primary
        write succeeds; failed entries stay for the next pass.
        """
        entries = await asyncio.to_thread(self._fallback.entries)
        migrated: list[str] = []
        failed: list[str] = []

        for call_id, fields in entries.items():
            try:
                await asyncio.to_thread(self._primary.upsert, call_id, fields)
            except PersistenceUnavailableError:
                failed.append(call_id)
                continue
            await asyncio.to_thread(self._fallback.remove, call_id)
            migrated.append(call_id)

        logger.info(
            "Reconciliation finished",
            extra={"migrated": len(migrated), "failed": len(failed)},
        )
        return ReconciliationReport(migrated=migrated, failed=failed)
