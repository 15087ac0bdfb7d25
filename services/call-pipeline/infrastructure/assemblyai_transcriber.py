"""AssemblyAI implementation of the TranscriptionService interface."""

import asyncio
import io

import assemblyai as aai
import httpx
from assemblyai import api as assemblyai_api
from leadcapture_common.logging import setup_logging

from domain.models import ProviderJobStatus, SpeakerTurn
from exceptions import TranscriptionFailedError, TranscriptionStatusError, UploadFailedError

from .interfaces import TranscriptionService

logger = setup_logging()


def build_transcription_config(
    speaker_labels: bool = True,
    entity_detection: bool = True,
    sentiment_analysis: bool = True,
) -> aai.TranscriptionConfig:
    """Returns the single job configuration used for every recording."""
    return aai.TranscriptionConfig(
        speaker_labels=speaker_labels,
        entity_detection=entity_detection,
        sentiment_analysis=sentiment_analysis,
    )


class AssemblyAITranscriber(TranscriptionService):
    """Handles batch transcription using AssemblyAI."""

    def __init__(
        self,
        transcriber: aai.Transcriber,
        http_client: httpx.Client,
        config: aai.TranscriptionConfig,
    ):
        self._transcriber = transcriber
        self._http_client = http_client
        self._config = config

    async def upload(self, recording_id: str, audio_data: bytes) -> str:
        try:
            upload_url = await asyncio.to_thread(
                self._transcriber.upload_file, io.BytesIO(audio_data)
            )
        except Exception as e:
            logger.exception("AssemblyAI upload failed", extra={"recording_id": recording_id})
            raise UploadFailedError(recording_id, cause=e) from e

        logger.info(
            "Recording uploaded to AssemblyAI",
            extra={"recording_id": recording_id, "size_bytes": len(audio_data)},
        )
        return upload_url

    async def create_job(self, recording_id: str, audio_url: str) -> str:
        try:
            transcript = await asyncio.to_thread(
                self._transcriber.submit, audio_url, self._config
            )
        except Exception as e:
            logger.exception(
                "AssemblyAI job creation failed", extra={"recording_id": recording_id}
            )
            raise TranscriptionFailedError(recording_id, "job creation failed", cause=e) from e

        if transcript.status == aai.TranscriptStatus.error or not transcript.id:
            raise TranscriptionFailedError(recording_id, transcript.error or "job rejected")

        logger.info(
            "Transcription job created",
            extra={"recording_id": recording_id, "job_id": transcript.id},
        )
        return transcript.id

    async def get_status(self, job_id: str) -> ProviderJobStatus:
        """
        Reads the job once through the REST API.

        The SDK's Transcript.get_by_id waits for completion, which would
        bypass the caller's polling bound.
        """
        try:
            response = await asyncio.to_thread(
                assemblyai_api.get_transcript, self._http_client, job_id
            )
        except Exception as e:
            raise TranscriptionStatusError(job_id, cause=e) from e

        status = getattr(response.status, "value", response.status)
        utterances = [
            SpeakerTurn(speaker=u.speaker, text=u.text, start=u.start, end=u.end)
            for u in response.utterances or []
        ]
        return ProviderJobStatus(
            status=status,
            text=response.text,
            utterances=utterances,
            audio_duration=response.audio_duration,
            error=response.error,
        )
