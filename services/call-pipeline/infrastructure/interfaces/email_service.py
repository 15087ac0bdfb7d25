"""Abstract interface for outbound email delivery."""

from abc import ABC, abstractmethod

from domain.models import EmailMessage


class EmailService(ABC):
    """Abstract base class for email backends."""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str:
        """
        Sends an email.

        Args:
            message: The rendered message.

        Returns:
            The provider message id.

        Raises:
            NotificationFailedError: If delivery fails.
        """
        pass
