"""PostgreSQL call record store backed by SQLModel."""

from datetime import datetime
from typing import Any

from leadcapture_common.db_models import CallRecordRow, utcnow
from leadcapture_common.logging import setup_logging
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import col, select

from exceptions import PersistenceUnavailableError
from infrastructure.interfaces import CallStore

logger = setup_logging()

TIMESTAMP_COLUMNS = {"created_at", "updated_at"}
WRITABLE_COLUMNS = set(CallRecordRow.model_fields) - TIMESTAMP_COLUMNS - {"call_id"}


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


class SqlCallStore(CallStore):
    """
    Handles database operations for call records.

    Writes are single-statement upserts keyed by call_id that update
    only the columns supplied by the caller.
    """

    def __init__(self, session_factory):
        """
        Initializes the store.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
        """
        self._session_factory = session_factory

    def upsert(self, call_id: str, fields: dict[str, Any]) -> None:
        values = {key: value for key, value in fields.items() if key in WRITABLE_COLUMNS}
        ignored = set(fields) - set(values) - TIMESTAMP_COLUMNS - {"call_id"}
        if ignored:
            logger.warning(
                "Ignoring unknown call record fields",
                extra={"call_id": call_id, "fields": sorted(ignored)},
            )

        now = utcnow()
        values["updated_at"] = now
        # only applies on insert, e.g. records migrated from the fallback file
        created_at = _parse_timestamp(fields.get("created_at")) or now

        try:
            with self._session_factory() as db_session:
                dialect = db_session.get_bind().dialect.name
                insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
                statement = insert(CallRecordRow).values(
                    call_id=call_id, created_at=created_at, **values
                )
                statement = statement.on_conflict_do_update(
                    index_elements=["call_id"],
                    set_={key: statement.excluded[key] for key in values},
                )
                db_session.execute(statement)
                db_session.commit()
        except Exception as e:
            logger.exception("Call record upsert failed", extra={"call_id": call_id})
            raise PersistenceUnavailableError(call_id, "upsert", cause=e) from e

        logger.info(
            "Call record upserted",
            extra={"call_id": call_id, "fields": sorted(values)},
        )

    def get(self, call_id: str) -> dict[str, Any] | None:
        try:
            with self._session_factory() as db_session:
                row = db_session.get(CallRecordRow, call_id)
                return row.model_dump() if row else None
        except Exception as e:
            logger.exception("Call record read failed", extra={"call_id": call_id})
            raise PersistenceUnavailableError(call_id, "get", cause=e) from e

    def list_records(
        self, needs_review: bool | None = None, limit: int = 100
    ) -> list[dict[str, Any]]:
        statement = select(CallRecordRow).order_by(col(CallRecordRow.created_at).desc())
        if needs_review is not None:
            statement = statement.where(CallRecordRow.needs_review == needs_review)
        statement = statement.limit(limit)

        try:
            with self._session_factory() as db_session:
                return [row.model_dump() for row in db_session.exec(statement).all()]
        except Exception as e:
            logger.exception("Call record listing failed")
            raise PersistenceUnavailableError("*", "list", cause=e) from e
