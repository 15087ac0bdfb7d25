"""Application configuration loaded from environment variables."""

import os
from pathlib import Path

from leadcapture_common import PostgresConfig, RedisConfig
from pydantic import BaseModel


class TwilioConfig(BaseModel, frozen=True):
    """Twilio credentials used to download call recordings."""

    account_sid: str
    auth_token: str
    download_timeout_seconds: float = 60.0


class AssemblyAIConfig(BaseModel, frozen=True):
    """AssemblyAI API configuration."""

    api_key: str
    speaker_labels: bool = True
    entity_detection: bool = True
    sentiment_analysis: bool = True


class DeepgramConfig(BaseModel, frozen=True):
    """Deepgram live transcription configuration."""

    api_key: str
    url: str = "wss://api.deepgram.com/v1/listen"
    model: str = "nova-2"
    language: str = "en-US"
    encoding: str = "mulaw"
    sample_rate: int = 8000
    utterance_end_ms: int = 1000
    max_pending_frames: int = 200


class GeminiConfig(BaseModel, frozen=True):
    """Gemini LLM configuration."""

    api_key: str
    model_name: str = "gemini-2.5-flash-lite"
    temperature: float = 0.3
    extraction_max_tokens: int = 2000
    sentiment_max_tokens: int = 500
    extraction_prompt_path: Path = Path("prompts/extraction.txt")
    sentiment_prompt_path: Path = Path("prompts/sentiment.txt")


class EmailConfig(BaseModel, frozen=True):
    """Resend email delivery configuration."""

    api_key: str
    from_email: str
    from_name: str = "Lead Desk"
    loan_officer_email: str
    loan_officer_name: str
    dashboard_url: str = "http://localhost:8000"


class PipelineConfig(BaseModel, frozen=True):
    """Batch pipeline tuning."""

    poll_interval_seconds: float = 5.0
    max_poll_attempts: int = 60
    review_confidence_threshold: int = 70
    default_agent_id: str | None = None


class StorageConfig(BaseModel, frozen=True):
    """Local file locations."""

    fallback_path: Path = Path("data/call_records.json")
    training_dir: Path = Path("data/training")


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    postgres: PostgresConfig
    redis: RedisConfig
    twilio: TwilioConfig
    assemblyai: AssemblyAIConfig
    deepgram: DeepgramConfig
    gemini: GeminiConfig
    email: EmailConfig
    pipeline: PipelineConfig
    storage: StorageConfig
    broadcast_queue_size: int = 100


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    loan_officer_name = os.getenv("LOAN_OFFICER_NAME", "Loan Officer")
    return AppConfig(
        postgres=PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "postgres"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            user=os.getenv("POSTGRES_USER", ""),
            password=os.getenv("POSTGRES_PASSWORD", ""),
            database=os.getenv("POSTGRES_DB", "lead_capture"),
        ),
        redis=RedisConfig(
            host=os.getenv("REDIS_HOST", "redis"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            job_ttl_seconds=int(os.getenv("REDIS_JOB_TTL_SECONDS", "604800")),
        ),
        twilio=TwilioConfig(
            account_sid=os.getenv("TWILIO_ACCOUNT_SID", ""),
            auth_token=os.getenv("TWILIO_AUTH_TOKEN", ""),
        ),
        assemblyai=AssemblyAIConfig(
            api_key=os.getenv("ASSEMBLYAI_API_KEY", ""),
        ),
        deepgram=DeepgramConfig(
            api_key=os.getenv("DEEPGRAM_API_KEY", ""),
        ),
        gemini=GeminiConfig(
            api_key=os.getenv("GEMINI_API_KEY", ""),
            model_name=os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite"),
        ),
        email=EmailConfig(
            api_key=os.getenv("RESEND_API_KEY", ""),
            from_email=os.getenv("RESEND_FROM_EMAIL", "noreply@example.com"),
            from_name=os.getenv("RESEND_FROM_NAME", "Lead Desk"),
            loan_officer_email=os.getenv("LOAN_OFFICER_EMAIL", ""),
            loan_officer_name=loan_officer_name,
            dashboard_url=os.getenv("DASHBOARD_URL", "http://localhost:8000"),
        ),
        pipeline=PipelineConfig(
            poll_interval_seconds=float(os.getenv("POLL_INTERVAL_SECONDS", "5")),
            max_poll_attempts=int(os.getenv("MAX_POLL_ATTEMPTS", "60")),
            default_agent_id=os.getenv("DEFAULT_AGENT_ID") or loan_officer_name,
        ),
        storage=StorageConfig(
            fallback_path=Path(
                os.getenv("FALLBACK_STORE_PATH", "data/call_records.json")
            ),
            training_dir=Path(os.getenv("TRAINING_DATA_DIR", "data/training")),
        ),
        broadcast_queue_size=int(os.getenv("BROADCAST_QUEUE_SIZE", "100")),
    )
