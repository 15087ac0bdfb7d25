"""Abstract interface for downloading call recordings."""

from abc import ABC, abstractmethod

from domain.models import RecordingLocator


class RecordingSource(ABC):
    """Abstract base class for recording download backends."""

    @abstractmethod
    async def fetch(self, locator: RecordingLocator) -> bytes:
        """
        Downloads a recording.

        Args:
            locator: Recording id and URL.

        Returns:
            The raw audio bytes.
        """
        pass
