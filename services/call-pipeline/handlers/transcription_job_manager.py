"""Upload, job creation and bounded polling of batch transcriptions."""

import asyncio

from leadcapture_common.logging import setup_logging

from domain.models import JobHandle, RecordingLocator, TranscriptResult
from exceptions import (
    TranscriptionFailedError,
    TranscriptionStatusError,
    TranscriptionTimeoutError,
)
from infrastructure.interfaces import RecordingSource, TranscriptionService

logger = setup_logging()


class TranscriptionJobManager:
    """Drives one recording through the transcription provider. Has no persistence side effects."""

    def __init__(
        self,
        recording_source: RecordingSource,
        transcription_service: TranscriptionService,
        sleep=asyncio.sleep,
    ):
        self._recordings = recording_source
        self._transcription = transcription_service
        self._sleep = sleep

    async def submit(self, locator: RecordingLocator) -> JobHandle:
        """
        Downloads the recording, re-uploads it and creates a job.

        Args:
            locator: Where to fetch the recording.

        Returns:
            Handle of the created provider job.

        Raises:
            UploadFailedError: If the download or upload fails.
            TranscriptionFailedError: If the provider rejects the job.
        """
        audio = await self._recordings.fetch(locator)
        audio_url = await self._transcription.upload(locator.recording_id, audio)
        job_id = await self._transcription.create_job(locator.recording_id, audio_url)
        return JobHandle(recording_id=locator.recording_id, provider_job_id=job_id)

    async def await_completion(
        self, handle: JobHandle, max_attempts: int = 60, poll_interval: float = 5.0
    ) -> TranscriptResult:
        """
        Polls the job until it reaches a terminal status.

        Every attempt waits poll_interval seconds first. A status read
        that fails at the network level uses up an attempt.

        Args:
            handle: The submitted job.
            max_attempts: Maximum number of status reads.
            poll_interval: Seconds to wait before each read.

        Returns:
            The completed transcript.

        Raises:
            TranscriptionFailedError: If the provider reports an error or
                completes with no text.
            TranscriptionTimeoutError: If max_attempts reads pass without a
                terminal status.
        """
        for attempt in range(1, max_attempts + 1):
            await self._sleep(poll_interval)

            try:
                status = await self._transcription.get_status(handle.provider_job_id)
            except TranscriptionStatusError as e:
                logger.warning(
                    "Transcription status read failed",
                    extra={"job_id": handle.provider_job_id, "attempt": attempt, "error": str(e.cause)},
                )
                continue

            if status.status == "completed":
                if not (status.text or "").strip():
                    raise TranscriptionFailedError(handle.recording_id, "completed with empty transcript")
                logger.info(
                    "Transcription completed",
                    extra={"recording_id": handle.recording_id, "attempts": attempt},
                )
                return TranscriptResult(
                    recording_id=handle.recording_id,
                    provider_job_id=handle.provider_job_id,
                    text=status.text,
                    utterances=status.utterances,
                    audio_duration=status.audio_duration,
                )

            if status.status == "error":
                raise TranscriptionFailedError(handle.recording_id, status.error or "provider error")

        logger.warning(
            "Transcription timed out",
            extra={"recording_id": handle.recording_id, "attempts": max_attempts},
        )
        raise TranscriptionTimeoutError(handle.recording_id, max_attempts)
