"""Abstract interface for live transcription providers."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from domain.models import Utterance

FinalResultCallback = Callable[[Utterance], Awaitable[None]]


class StreamingSession(ABC):
    """An open provider session for one call."""

    @abstractmethod
    def send(self, frame: bytes) -> bool:
        """
        Queues an audio frame without blocking.

        Returns:
            False when the frame was dropped because the buffer is full.
        """
        pass

    @abstractmethod
    async def finish(self) -> None:
        """Flushes pending audio and closes the session. Safe to call twice."""
        pass


class StreamingService(ABC):
    """Abstract base class for live transcription backends."""

    @abstractmethod
    async def open(self, call_id: str, on_final: FinalResultCallback) -> StreamingSession:
        """
        Opens a session configured for diarization and interim plus final results.

        Args:
            call_id: The call being transcribed.
            on_final: Awaited once per final result.

        Returns:
            The open session.

        Raises:
            StreamingSessionError: If the provider connection fails.
        """
        pass
