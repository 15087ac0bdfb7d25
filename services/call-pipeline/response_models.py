"""Response models for the call-pipeline API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from domain.models import ActionItem, CallRecord


class CallDetailResponse(BaseModel):
    """A call record with its currently overdue action items."""

    record: CallRecord
    overdue_action_items: list[ActionItem]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageResponse(_CamelModel):
    success: bool = True
    message: str


class TrainingExportResponse(_CamelModel):
    export_date: datetime
    total_recordings: int
    data: list[dict[str, Any]]


class UpdatePromptResponse(_CamelModel):
    success: bool = True
    message: str
    examples_used: int


class ReprocessResponse(BaseModel):
    call_id: str
    recording_id: str
    previous_status: str | None = None
    status: str = "scheduled"
