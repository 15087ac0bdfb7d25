"""Infrastructure layer exports."""

from infrastructure.assemblyai_transcriber import AssemblyAITranscriber
from infrastructure.broadcast_channel import BroadcastChannel
from infrastructure.deepgram_streaming import DeepgramStreamingService
from infrastructure.gemini_llm import GeminiLLMService
from infrastructure.json_file_store import JsonFileCallStore
from infrastructure.redis_job_registry import RedisJobRegistry
from infrastructure.resend_email import ResendEmailService
from infrastructure.sql_call_store import SqlCallStore
from infrastructure.twilio_recordings import TwilioRecordingSource

__all__ = [
    "AssemblyAITranscriber",
    "BroadcastChannel",
    "DeepgramStreamingService",
    "GeminiLLMService",
    "JsonFileCallStore",
    "RedisJobRegistry",
    "ResendEmailService",
    "SqlCallStore",
    "TwilioRecordingSource",
]
