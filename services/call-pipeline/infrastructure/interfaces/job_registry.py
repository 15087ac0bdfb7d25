"""Abstract interface for the transcription job registry."""

from abc import ABC, abstractmethod

from domain.models import TranscriptionJob


class JobRegistry(ABC):
    """Tracks at most one transcription job per recording id."""

    @abstractmethod
    async def claim(self, job: TranscriptionJob) -> bool:
        """
        Registers a new job if none exists for its recording.

        Returns:
            True if claimed, False for a duplicate.

        Raises:
            JobRegistryError: If the registry is unreachable.
        """
        pass

    @abstractmethod
    async def update(self, job: TranscriptionJob) -> None:
        """
        Stores the job's current state.

        Raises:
            JobRegistryError: If the registry is unreachable.
        """
        pass

    @abstractmethod
    async def get(self, recording_id: str) -> TranscriptionJob | None:
        """
        Retrieves a job by recording id.

        Raises:
            JobRegistryError: If the registry is unreachable.
        """
        pass

    @abstractmethod
    async def release(self, recording_id: str) -> None:
        """
        Removes the job for a recording so it can be claimed again.

        Raises:
            JobRegistryError: If the registry is unreachable.
        """
        pass
