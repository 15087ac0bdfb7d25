"""Abstract interface for batch transcription providers."""

from abc import ABC, abstractmethod

from domain.models import ProviderJobStatus


class TranscriptionService(ABC):
    """Abstract base class for batch transcription backends."""

    @abstractmethod
    async def upload(self, recording_id: str, audio_data: bytes) -> str:
        """
        Uploads raw audio to the provider.

        Args:
            recording_id: Recording the audio belongs to.
            audio_data: Recording bytes.

        Returns:
            Provider URL of the uploaded audio.

        Raises:
            UploadFailedError: If the upload fails.
        """
        pass

    @abstractmethod
    async def create_job(self, recording_id: str, audio_url: str) -> str:
        """
        Creates a transcription job with diarization, entity detection and
        sentiment tagging enabled.

        Args:
            recording_id: Recording the job is for.
            audio_url: Provider URL returned by upload.

        Returns:
            The provider job id.

        Raises:
            TranscriptionFailedError: If the provider rejects the job.
        """
        pass

    @abstractmethod
    async def get_status(self, job_id: str) -> ProviderJobStatus:
        """
        Reads the current status of a job once, without waiting.

        Args:
            job_id: The provider job id.

        Returns:
            ProviderJobStatus with text and utterances once completed.

        Raises:
            TranscriptionStatusError: If the status cannot be read.
        """
        pass
