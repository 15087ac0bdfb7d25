"""Turns call transcripts into structured lead records."""

from datetime import date, datetime, timezone

from leadcapture_common.logging import setup_logging

from domain.action_items import generate_action_items
from domain.models import DiarizedTurns, ExtractedRecord, PlainText, SentimentAnalysis
from domain.scoring import compute_confidence_score
from domain.transcript import normalize_transcript
from exceptions import ExtractionUnavailableError, LLMServiceError
from infrastructure.interfaces import LLMService

logger = setup_logging()


class ExtractionEngine:
    """Extracts lead fields, action items and sentiment from a transcript."""

    def __init__(self, llm_service: LLMService):
        self._llm = llm_service

    async def extract(
        self, transcript: PlainText | DiarizedTurns, today: date | None = None
    ) -> ExtractedRecord:
        """
        Runs field extraction and sentiment analysis on a transcript.

        The confidence score is derived from field completeness only.
        A failed sentiment call falls back to neutral defaults.

        Args:
            transcript: Plain or diarized transcript.
            today: Reference day for action item due dates.

        Returns:
            The extracted record.

        Raises:
            ExtractionUnavailableError: If field extraction fails.
        """
        text = normalize_transcript(transcript)
        if not text.strip():
            raise ExtractionUnavailableError("transcript is empty")

        try:
            fields = await self._llm.extract_fields(text)
        except LLMServiceError as e:
            raise ExtractionUnavailableError(str(e), cause=e) from e

        try:
            sentiment = await self._llm.analyze_sentiment(text)
        except LLMServiceError:
            logger.warning("Sentiment analysis failed, using defaults", exc_info=True)
            sentiment = SentimentAnalysis()

        confidence = compute_confidence_score(fields.model_dump())
        action_items = generate_action_items(fields, today)

        logger.info(
            "Transcript extracted",
            extra={
                "confidence_score": confidence,
                "action_item_count": len(action_items),
                "sentiment": sentiment.overall,
            },
        )

        return ExtractedRecord(
            fields=fields,
            confidence_score=confidence,
            action_items=action_items,
            sentiment=sentiment,
            extracted_at=datetime.now(timezone.utc),
        )
