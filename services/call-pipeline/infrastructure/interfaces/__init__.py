"""Infrastructure interface exports."""

from infrastructure.interfaces.call_store import CallStore
from infrastructure.interfaces.email_service import EmailService
from infrastructure.interfaces.job_registry import JobRegistry
from infrastructure.interfaces.llm_service import LLMService
from infrastructure.interfaces.recording_source import RecordingSource
from infrastructure.interfaces.streaming_service import (
    FinalResultCallback,
    StreamingService,
    StreamingSession,
)
from infrastructure.interfaces.transcription_service import TranscriptionService

__all__ = [
    "CallStore",
    "EmailService",
    "FinalResultCallback",
    "JobRegistry",
    "LLMService",
    "RecordingSource",
    "StreamingService",
    "StreamingSession",
    "TranscriptionService",
]
