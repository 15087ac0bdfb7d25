"""Abstract interface for LLM service operations."""

from abc import ABC, abstractmethod

from domain.models import LeadFields, SentimentAnalysis


class LLMService(ABC):
    """Abstract base class for LLM backends."""

    @abstractmethod
    async def extract_fields(self, transcript: str) -> LeadFields:
        """
        Extracts structured lead fields from a transcript.

        Args:
            transcript: Normalized transcript text.

        Returns:
            LeadFields with null for anything not mentioned.

        Raises:
            LLMServiceError: If the LLM call fails or returns unusable output.
        """
        pass

    @abstractmethod
    async def analyze_sentiment(self, transcript: str) -> SentimentAnalysis:
        """
        Classifies tone and urgency of the inquiry.

        Raises:
            LLMServiceError: If the LLM call fails.
        """
        pass

    @abstractmethod
    def use_extraction_prompt(self, prompt: str) -> None:
        """Replaces the extraction system prompt for subsequent calls."""
        pass
