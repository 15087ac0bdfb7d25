"""Per-recording state machine for the batch pipeline."""

import asyncio
from typing import Any

from leadcapture_common.logging import setup_logging

from config import PipelineConfig
from domain.events import pipeline_status, transcription_ready
from domain.extraction_engine import ExtractionEngine
from domain.models import (
    ExtractedRecord,
    JobState,
    PipelineStage,
    RecordingEvent,
    RecordingLocator,
    TranscriptionJob,
    TranscriptResult,
)
from exceptions import (
    ExtractionUnavailableError,
    JobRegistryError,
    TranscriptionFailedError,
    TranscriptionTimeoutError,
    UploadFailedError,
)
from handlers.notification_dispatcher import NotificationDispatcher
from handlers.transcription_job_manager import TranscriptionJobManager
from infrastructure.broadcast_channel import BroadcastChannel
from infrastructure.interfaces import JobRegistry
from repositories.persistence_gateway import PersistenceGateway

logger = setup_logging()


class PipelineOrchestrator:
    """
    Sequences transcription, extraction and notification for one recording.

    RecordingPending -> Transcribing -> Extracting -> Notifying -> Done,
    with Failed reachable from every stage before Done. Each transition
    is persisted and then published to viewers.
    """

    def __init__(
        self,
        job_manager: TranscriptionJobManager,
        extraction_engine: ExtractionEngine,
        gateway: PersistenceGateway,
        dispatcher: NotificationDispatcher,
        registry: JobRegistry,
        broadcast: BroadcastChannel,
        config: PipelineConfig,
    ):
        self._jobs = job_manager
        self._extraction = extraction_engine
        self._gateway = gateway
        self._dispatcher = dispatcher
        self._registry = registry
        self._broadcast = broadcast
        self._config = config
        self._tasks: set[asyncio.Task] = set()
        self._in_flight: set[str] = set()

    def schedule(self, event: RecordingEvent) -> asyncio.Task | None:
        """
        Starts the pipeline in the background without awaiting it.

        Returns:
            The running task, or None when the event does not trigger a run.
        """
        if not event.is_trigger:
            logger.info(
                "Recording event ignored",
                extra={"recording_id": event.recording_id, "status": event.recording_status},
            )
            return None

        task = asyncio.create_task(
            self.handle_recording_event(event), name=f"pipeline-{event.recording_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def drain(self) -> None:
        """Waits for every scheduled run to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Pipeline task cancelled", extra={"task": task.get_name()})
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Pipeline task failed",
                extra={"task": task.get_name()},
                exc_info=(type(error), error, error.__traceback__),
            )

    async def handle_recording_event(self, event: RecordingEvent) -> PipelineStage | None:
        """
        Runs the full pipeline for one recording.

        Args:
            event: A recording-completed event.

        Returns:
            The terminal stage, or None if the event was ignored as a duplicate.
        """
        if not event.is_trigger:
            return None

        if event.recording_id in self._in_flight:
            logger.info(
                "Recording already in flight, event ignored",
                extra={"recording_id": event.recording_id, "call_id": event.call_id},
            )
            return None

        self._in_flight.add(event.recording_id)
        try:
            return await self._run(event)
        finally:
            self._in_flight.discard(event.recording_id)

    def is_in_flight(self, recording_id: str) -> bool:
        return recording_id in self._in_flight

    async def reprocess(self, event: RecordingEvent) -> asyncio.Task | None:
        """
        Re-runs the pipeline for a recording that already has a job.

        The registry claim is released first so the new run is not
        ignored as a duplicate.

        Returns:
            The running task, or None when the recording is still in flight.
        """
        if self.is_in_flight(event.recording_id):
            return None
        try:
            await self._registry.release(event.recording_id)
        except JobRegistryError:
            logger.warning(
                "Job registry unavailable, reprocessing without releasing claim",
                extra={"recording_id": event.recording_id},
            )
        logger.info(
            "Reprocessing recording",
            extra={"recording_id": event.recording_id, "call_id": event.call_id},
        )
        return self.schedule(event)

    async def _run(self, event: RecordingEvent) -> PipelineStage | None:
        job = TranscriptionJob(recording_id=event.recording_id, call_id=event.call_id)
        if not await self._claim(job):
            logger.info(
                "Duplicate recording event ignored",
                extra={"recording_id": event.recording_id, "call_id": event.call_id},
            )
            return None

        stage = PipelineStage.RECORDING_PENDING
        try:
            await self._transition(
                event,
                stage,
                {
                    "recording_url": event.recording_url,
                    "duration": event.duration_seconds,
                    "agent_id": self._config.default_agent_id,
                    "failed_stage": None,
                    "failure_reason": None,
                },
            )

            stage = PipelineStage.TRANSCRIBING
            await self._transition(event, stage, {"transcript_status": "processing"})
            try:
                result = await self._transcribe(event, job)
            except (UploadFailedError, TranscriptionFailedError, TranscriptionTimeoutError) as e:
                await self._track(job.model_copy(update={"state": JobState.FAILED, "failure_reason": str(e)}))
                transcript_status = "timeout" if isinstance(e, TranscriptionTimeoutError) else "error"
                await self._fail(event, stage, e, {"transcript_status": transcript_status})
                return PipelineStage.FAILED

            stage = PipelineStage.EXTRACTING
            await self._transition(
                event,
                stage,
                {
                    "transcript_id": result.provider_job_id,
                    "transcript_text": result.text,
                    "transcript_status": "completed",
                    "utterances": result.utterances,
                    "duration": result.audio_duration or event.duration_seconds,
                },
            )
            self._broadcast.publish(
                transcription_ready(event.call_id, event.recording_id, result.text)
            )
            extraction = await self._extract(event, result)

            stage = PipelineStage.NOTIFYING
            await self._transition(event, stage, self._extraction_fields(extraction))
            report = await self._dispatcher.dispatch(
                event.call_id,
                result.audio_duration or event.duration_seconds,
                extraction,
                result.text,
            )

            stage = PipelineStage.DONE
            await self._transition(event, stage, {"notifications": report})
            return PipelineStage.DONE

        except Exception as e:
            logger.exception(
                "Pipeline run failed",
                extra={"recording_id": event.recording_id, "stage": stage.value},
            )
            await self._fail(event, stage, e)
            return PipelineStage.FAILED

    async def _transcribe(self, event: RecordingEvent, job: TranscriptionJob) -> TranscriptResult:
        locator = RecordingLocator(
            recording_id=event.recording_id, call_id=event.call_id, url=event.recording_url
        )
        handle = await self._jobs.submit(locator)
        job = job.model_copy(
            update={"state": JobState.SUBMITTED, "provider_job_id": handle.provider_job_id}
        )
        await self._track(job)
        await self._track(job.model_copy(update={"state": JobState.POLLING}))

        result = await self._jobs.await_completion(
            handle,
            max_attempts=self._config.max_poll_attempts,
            poll_interval=self._config.poll_interval_seconds,
        )
        await self._track(job.model_copy(update={"state": JobState.COMPLETED}))
        return result

    async def _extract(
        self, event: RecordingEvent, result: TranscriptResult
    ) -> ExtractedRecord | None:
        try:
            return await self._extraction.extract(result.as_transcript())
        except ExtractionUnavailableError as e:
            logger.warning(
                "Extraction unavailable, flagging for review",
                extra={"recording_id": event.recording_id, "reason": e.reason},
            )
            return None

    def _extraction_fields(self, extraction: ExtractedRecord | None) -> dict[str, Any]:
        if extraction is None:
            return {
                "extraction": None,
                "confidence_score": None,
                "needs_review": True,
                "is_processed": False,
            }

        borrower = extraction.fields.borrower_information
        return {
            "extraction": extraction,
            "confidence_score": extraction.confidence_score,
            "needs_review": extraction.confidence_score < self._config.review_confidence_threshold,
            "is_processed": True,
            "customer_name": borrower.full_name if borrower else None,
            "customer_email": borrower.email_address if borrower else None,
            "customer_phone": borrower.phone_number if borrower else None,
        }

    async def _transition(
        self,
        event: RecordingEvent,
        stage: PipelineStage,
        fields: dict[str, Any],
        detail: str | None = None,
    ) -> None:
        await self._gateway.upsert(
            event.call_id,
            {"recording_id": event.recording_id, "status": stage.value, **fields},
        )
        self._broadcast.publish(pipeline_status(event.call_id, event.recording_id, stage, detail))
        logger.info(
            "Pipeline stage reached",
            extra={"call_id": event.call_id, "recording_id": event.recording_id, "stage": stage.value},
        )

    async def _fail(
        self,
        event: RecordingEvent,
        stage: PipelineStage,
        error: Exception,
        fields: dict[str, Any] | None = None,
    ) -> None:
        await self._transition(
            event,
            PipelineStage.FAILED,
            {"failed_stage": stage.value, "failure_reason": str(error), **(fields or {})},
            detail=f"{stage.value}: {error}",
        )

    async def _claim(self, job: TranscriptionJob) -> bool:
        try:
            return await self._registry.claim(job)
        except JobRegistryError:
            logger.warning(
                "Job registry unavailable, only in-process duplicates are ignored",
                extra={"recording_id": job.recording_id},
            )
            return True

    async def _track(self, job: TranscriptionJob) -> None:
        try:
            await self._registry.update(job)
        except JobRegistryError:
            logger.warning(
                "Job registry update failed",
                extra={"recording_id": job.recording_id, "state": job.state.value},
            )
