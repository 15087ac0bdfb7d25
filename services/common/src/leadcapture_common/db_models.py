from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

JSONColumn = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CallRecordRow(SQLModel, table=True):
    __tablename__ = "call_records"

    call_id: str = Field(primary_key=True, max_length=64)
    recording_id: Optional[str] = Field(default=None, index=True, max_length=64)

    from_number: Optional[str] = Field(default=None, max_length=32)
    to_number: Optional[str] = Field(default=None, max_length=32)
    direction: Optional[str] = Field(default=None, max_length=32)
    call_status: Optional[str] = Field(default=None, max_length=32)
    agent_id: Optional[str] = Field(default=None, max_length=128)

    customer_name: Optional[str] = None
    customer_email: Optional[str] = Field(default=None, index=True)
    customer_phone: Optional[str] = Field(default=None, max_length=32)

    duration: Optional[int] = None
    status: Optional[str] = Field(default=None, index=True, max_length=32)
    failed_stage: Optional[str] = Field(default=None, max_length=32)
    failure_reason: Optional[str] = None

    recording_url: Optional[str] = None
    transcript_id: Optional[str] = Field(default=None, max_length=128)
    transcript_text: Optional[str] = None
    transcript_status: Optional[str] = Field(default=None, max_length=32)
    utterances: Optional[list[dict[str, Any]]] = Field(
        default=None, sa_column=Column(JSONColumn)
    )
    live_transcript: Optional[list[dict[str, Any]]] = Field(
        default=None, sa_column=Column(JSONColumn)
    )
    live_transcript_text: Optional[str] = None

    extraction: Optional[dict[str, Any]] = Field(
        default=None, sa_column=Column(JSONColumn)
    )
    confidence_score: Optional[int] = None
    needs_review: bool = Field(default=False, index=True)
    is_processed: bool = False
    is_archived: bool = False
    notifications: Optional[dict[str, Any]] = Field(
        default=None, sa_column=Column(JSONColumn)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
