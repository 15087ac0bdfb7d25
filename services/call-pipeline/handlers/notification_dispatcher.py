"""Sends the lead alert and the customer follow-up."""

from datetime import datetime, timezone

from leadcapture_common.logging import setup_logging

from config import EmailConfig
from domain.email_templates import render_customer_follow_up, render_lead_alert
from domain.models import EmailMessage, ExtractedRecord, NotificationOutcome, NotificationReport
from exceptions import NotificationFailedError
from infrastructure.interfaces import EmailService

logger = setup_logging()


class NotificationDispatcher:
    """Delivers post-call emails. Failures are reported, never raised."""

    def __init__(self, email_service: EmailService, config: EmailConfig):
        self._email = email_service
        self._config = config

    async def dispatch(
        self,
        call_id: str,
        duration: int | None,
        extraction: ExtractedRecord | None,
        transcript_text: str | None,
    ) -> NotificationReport:
        """
        Sends the internal alert, and the customer email when one was extracted.

        Args:
            call_id: The processed call.
            duration: Call length in seconds.
            extraction: Extracted lead, or None when extraction was unavailable.
            transcript_text: Attached to the internal alert.

        Returns:
            Outcome of each attempted email.
        """
        alert = render_lead_alert(
            to=self._config.loan_officer_email,
            call_id=call_id,
            duration=duration,
            loan_officer_name=self._config.loan_officer_name,
            record=extraction,
            transcript_text=transcript_text,
            dashboard_url=self._config.dashboard_url,
        )
        loan_officer = await self._deliver(alert, call_id)

        customer = None
        if extraction and extraction.borrower_email:
            follow_up = render_customer_follow_up(
                to=extraction.borrower_email,
                borrower_name=extraction.borrower_name,
                loan_officer_name=self._config.loan_officer_name,
                company_name=self._config.from_name,
            )
            customer = await self._deliver(follow_up, call_id)

        return NotificationReport(loan_officer=loan_officer, customer=customer)

    async def _deliver(self, message: EmailMessage, call_id: str) -> NotificationOutcome:
        if not message.to:
            logger.warning("No recipient configured, email skipped", extra={"call_id": call_id})
            return NotificationOutcome(sent=False, error="no recipient configured")

        try:
            message_id = await self._email.send(message)
        except NotificationFailedError as e:
            logger.warning(
                "Notification failed",
                extra={"call_id": call_id, "recipient": message.to, "error": str(e.cause)},
            )
            return NotificationOutcome(sent=False, recipient=message.to, error=str(e.cause or e))

        return NotificationOutcome(
            sent=True,
            recipient=message.to,
            message_id=message_id,
            sent_at=datetime.now(timezone.utc),
        )
