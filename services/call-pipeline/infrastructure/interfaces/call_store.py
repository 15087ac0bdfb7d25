"""Abstract interface for call record stores."""

from abc import ABC, abstractmethod
from typing import Any


class CallStore(ABC):
    """Abstract base class for call record storage backends."""

    @abstractmethod
    def upsert(self, call_id: str, fields: dict[str, Any]) -> None:
        """
        Inserts the record or updates exactly the supplied fields.

        Args:
            call_id: Unique call id.
            fields: JSON-compatible column values.

        Raises:
            PersistenceUnavailableError: If the store cannot be written.
        """
        pass

    @abstractmethod
    def get(self, call_id: str) -> dict[str, Any] | None:
        """
        Retrieves one record.

        Returns:
            The stored fields, or None if the call is unknown.

        Raises:
            PersistenceUnavailableError: If the store cannot be read.
        """
        pass

    @abstractmethod
    def list_records(self, needs_review: bool | None = None, limit: int = 100) -> list[dict[str, Any]]:
        """
        Lists records newest first.

        Raises:
            PersistenceUnavailableError: If the store cannot be read.
        """
        pass
