"""Domain layer exports."""

from domain.action_items import business_days_from, generate_action_items
from domain.events import BroadcastEvent
from domain.extraction_engine import ExtractionEngine
from domain.models import (
    ActionItem,
    CallRecord,
    CallStatusEvent,
    DiarizedTurns,
    ExtractedRecord,
    JobHandle,
    JobState,
    LeadFields,
    PipelineStage,
    PlainText,
    RecordingEvent,
    RecordingLocator,
    SentimentAnalysis,
    SpeakerTurn,
    TranscriptionJob,
    TranscriptResult,
    Utterance,
)
from domain.scoring import compute_confidence_score
from domain.transcript import normalize_transcript

__all__ = [
    "ActionItem",
    "BroadcastEvent",
    "CallRecord",
    "CallStatusEvent",
    "DiarizedTurns",
    "ExtractedRecord",
    "ExtractionEngine",
    "JobHandle",
    "JobState",
    "LeadFields",
    "PipelineStage",
    "PlainText",
    "RecordingEvent",
    "RecordingLocator",
    "SentimentAnalysis",
    "SpeakerTurn",
    "TranscriptionJob",
    "TranscriptResult",
    "Utterance",
    "business_days_from",
    "compute_confidence_score",
    "generate_action_items",
    "normalize_transcript",
]
