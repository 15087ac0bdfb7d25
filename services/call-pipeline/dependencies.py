"""Dependency injection configuration for the call-pipeline service."""

from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path

import assemblyai as aai
import httpx
import redis.asyncio as aioredis
from google import genai
from leadcapture_common.logging import setup_logging
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from config import AppConfig, load_config
from domain.extraction_engine import ExtractionEngine
from handlers.notification_dispatcher import NotificationDispatcher
from handlers.pipeline_orchestrator import PipelineOrchestrator
from handlers.transcription_job_manager import TranscriptionJobManager
from infrastructure import (
    AssemblyAITranscriber,
    BroadcastChannel,
    DeepgramStreamingService,
    GeminiLLMService,
    JsonFileCallStore,
    RedisJobRegistry,
    ResendEmailService,
    SqlCallStore,
    TwilioRecordingSource,
)
from infrastructure.assemblyai_transcriber import build_transcription_config
from infrastructure.interfaces import JobRegistry, LLMService, StreamingService
from repositories.persistence_gateway import PersistenceGateway
from repositories.training_repository import TrainingRepository

logger = setup_logging()

SERVICE_DIR = Path(__file__).parent


@lru_cache
def get_config() -> AppConfig:
    return load_config()


@lru_cache
def get_db_engine() -> Engine:
    """Creates the engine and the call_records table if the database is reachable."""
    config = get_config()
    engine = create_engine(
        config.postgres.url, pool_pre_ping=True, connect_args={"connect_timeout": 5}
    )
    try:
        SQLModel.metadata.create_all(engine)
        logger.info("Database initialized", extra={"host": config.postgres.host})
    except SQLAlchemyError:
        logger.exception(
            "Database unavailable at startup, writes will use the fallback file",
            extra={"host": config.postgres.host},
        )
    return engine


@contextmanager
def _session_factory():
    """Creates a database session context manager."""
    with Session(get_db_engine()) as session:
        yield session


@lru_cache
def get_persistence_gateway() -> PersistenceGateway:
    config = get_config()
    return PersistenceGateway(
        SqlCallStore(_session_factory),
        JsonFileCallStore(config.storage.fallback_path),
    )


@lru_cache
def get_broadcast_channel() -> BroadcastChannel:
    return BroadcastChannel(get_config().broadcast_queue_size)


@lru_cache
def get_job_registry() -> JobRegistry:
    config = get_config()
    client = aioredis.Redis(
        host=config.redis.host,
        port=config.redis.port,
        decode_responses=True,
    )
    return RedisJobRegistry(client, config.redis.job_ttl_seconds)


@lru_cache
def get_training_repository() -> TrainingRepository:
    return TrainingRepository(get_config().storage.training_dir)


@lru_cache
def get_base_extraction_prompt() -> str:
    path = SERVICE_DIR / get_config().gemini.extraction_prompt_path
    return path.read_text(encoding="utf-8")


@lru_cache
def get_llm_service() -> LLMService:
    """Builds the Gemini service, preferring a saved training-enhanced prompt."""
    config = get_config().gemini
    enhanced_prompt = get_training_repository().load_prompt()
    if enhanced_prompt:
        logger.info("Using training-enhanced extraction prompt")
    sentiment_prompt = (SERVICE_DIR / config.sentiment_prompt_path).read_text(encoding="utf-8")

    return GeminiLLMService(
        genai.Client(api_key=config.api_key),
        config.model_name,
        extraction_prompt=enhanced_prompt or get_base_extraction_prompt(),
        sentiment_prompt=sentiment_prompt,
        temperature=config.temperature,
        extraction_max_tokens=config.extraction_max_tokens,
        sentiment_max_tokens=config.sentiment_max_tokens,
    )


@lru_cache
def get_job_manager() -> TranscriptionJobManager:
    config = get_config()
    aai.settings.api_key = config.assemblyai.api_key
    transcription_config = build_transcription_config(
        speaker_labels=config.assemblyai.speaker_labels,
        entity_detection=config.assemblyai.entity_detection,
        sentiment_analysis=config.assemblyai.sentiment_analysis,
    )
    transcriber = AssemblyAITranscriber(
        aai.Transcriber(config=transcription_config),
        httpx.Client(
            base_url=aai.settings.base_url,
            headers={"authorization": config.assemblyai.api_key},
            timeout=30.0,
        ),
        transcription_config,
    )
    recordings = TwilioRecordingSource(
        config.twilio.account_sid,
        config.twilio.auth_token,
        config.twilio.download_timeout_seconds,
    )
    return TranscriptionJobManager(recordings, transcriber)


@lru_cache
def get_orchestrator() -> PipelineOrchestrator:
    config = get_config()
    dispatcher = NotificationDispatcher(
        ResendEmailService(config.email.api_key, config.email.from_email, config.email.from_name),
        config.email,
    )
    return PipelineOrchestrator(
        job_manager=get_job_manager(),
        extraction_engine=ExtractionEngine(get_llm_service()),
        gateway=get_persistence_gateway(),
        dispatcher=dispatcher,
        registry=get_job_registry(),
        broadcast=get_broadcast_channel(),
        config=config.pipeline,
    )


@lru_cache
def get_streaming_service() -> StreamingService:
    return DeepgramStreamingService(get_config().deepgram)
