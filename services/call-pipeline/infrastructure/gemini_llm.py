"""Gemini LLM service implementation."""

from google import genai
from leadcapture_common.logging import setup_logging
from pydantic import BaseModel, ValidationError

from domain.models import LeadFields, SentimentAnalysis
from exceptions import LLMServiceError
from infrastructure.interfaces import LLMService

logger = setup_logging()


class GeminiLLMService(LLMService):
    """LLM service implementation using Google Gemini."""

    def __init__(
        self,
        client: genai.Client,
        model_name: str,
        extraction_prompt: str,
        sentiment_prompt: str,
        temperature: float = 0.3,
        extraction_max_tokens: int = 2000,
        sentiment_max_tokens: int = 500,
    ):
        self._client = client
        self._model_name = model_name
        self._extraction_prompt = extraction_prompt
        self._sentiment_prompt = sentiment_prompt
        self._temperature = temperature
        self._extraction_max_tokens = extraction_max_tokens
        self._sentiment_max_tokens = sentiment_max_tokens

    async def extract_fields(self, transcript: str) -> LeadFields:
        """
        Extracts lead fields from a transcript using Gemini.

        Args:
            transcript: Normalized transcript text.

        Returns:
            LeadFields parsed from the JSON response.

        Raises:
            LLMServiceError: If the Gemini API call fails or the response
                does not match the schema.
        """
        return await self._generate(
            contents=(
                "Analyze this mortgage call transcript and extract the relevant "
                f"information:\n\n{transcript}"
            ),
            schema=LeadFields,
            system_prompt=self._extraction_prompt,
            max_tokens=self._extraction_max_tokens,
        )

    async def analyze_sentiment(self, transcript: str) -> SentimentAnalysis:
        return await self._generate(
            contents=transcript,
            schema=SentimentAnalysis,
            system_prompt=self._sentiment_prompt,
            max_tokens=self._sentiment_max_tokens,
        )

    def use_extraction_prompt(self, prompt: str) -> None:
        self._extraction_prompt = prompt
        logger.info("Extraction prompt replaced", extra={"prompt_length": len(prompt)})

    async def _generate(
        self, contents: str, schema: type[BaseModel], system_prompt: str, max_tokens: int
    ):
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=contents,
                config={
                    "response_mime_type": "application/json",
                    "response_schema": schema,
                    "system_instruction": system_prompt,
                    "temperature": self._temperature,
                    "max_output_tokens": max_tokens,
                },
            )
            if not response.text:
                raise LLMServiceError("Gemini returned empty response")
            result = schema.model_validate_json(response.text)
        except LLMServiceError:
            logger.error("Gemini returned empty response", extra={"schema": schema.__name__})
            raise
        except ValidationError as e:
            logger.exception("Gemini response did not match schema", extra={"schema": schema.__name__})
            raise LLMServiceError(f"Unparseable {schema.__name__} response", cause=e) from e
        except Exception as e:
            logger.exception("Gemini API call failed", extra={"schema": schema.__name__})
            raise LLMServiceError(f"Gemini call failed: {e}", cause=e) from e

        logger.info("LLM call completed", extra={"schema": schema.__name__})
        return result
