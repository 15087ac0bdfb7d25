"""Downloads call recordings from Twilio."""

import httpx
from leadcapture_common.logging import setup_logging

from domain.models import RecordingLocator
from exceptions import UploadFailedError

from .interfaces import RecordingSource

logger = setup_logging()


class TwilioRecordingSource(RecordingSource):
    """Fetches recording media with the account's basic-auth credentials."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._auth = (account_sid, auth_token)
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch(self, locator: RecordingLocator) -> bytes:
        """
        Downloads a recording.

        Args:
            locator: Recording id and media URL.

        Returns:
            The raw audio bytes.

        Raises:
            UploadFailedError: If the download fails or returns no data.
        """
        try:
            async with httpx.AsyncClient(
                auth=self._auth,
                timeout=self._timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(locator.url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.exception(
                "Recording download failed",
                extra={"recording_id": locator.recording_id, "url": locator.url},
            )
            raise UploadFailedError(locator.recording_id, cause=e) from e

        if not response.content:
            raise UploadFailedError(
                locator.recording_id, cause=ValueError("recording is empty")
            )

        logger.info(
            "Recording downloaded",
            extra={"recording_id": locator.recording_id, "size_bytes": len(response.content)},
        )
        return response.content
