"""Email delivery through Resend."""

import asyncio

import resend
from leadcapture_common.logging import setup_logging

from domain.models import EmailMessage
from exceptions import NotificationFailedError
from infrastructure.interfaces import EmailService

logger = setup_logging()


class ResendEmailService(EmailService):
    """Sends emails via the Resend API."""

    def __init__(self, api_key: str, from_email: str, from_name: str):
        self._from_email = from_email
        self._from_name = from_name
        resend.api_key = api_key

    async def send(self, message: EmailMessage) -> str:
        """
        Sends an email through Resend.

        Args:
            message: The rendered message.

        Returns:
            The Resend message id.

        Raises:
            NotificationFailedError: If the API call fails.
        """
        sender_name = message.sender_name or self._from_name
        params: resend.Emails.SendParams = {
            "from": f"{sender_name} <{self._from_email}>",
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            params["text"] = message.text
        if message.attachments:
            params["attachments"] = [
                {"filename": a.filename, "content": list(a.content.encode("utf-8"))}
                for a in message.attachments
            ]

        try:
            response = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            logger.exception("Resend API call failed", extra={"recipient": message.to})
            raise NotificationFailedError(message.to, cause=e) from e

        message_id = response.get("id", "")
        logger.info(
            "Email sent",
            extra={"recipient": message.to, "subject": message.subject, "message_id": message_id},
        )
        return message_id
