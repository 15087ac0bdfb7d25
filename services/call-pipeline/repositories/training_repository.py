"""File storage for annotated training examples."""

import json
import re
from datetime import datetime, timezone
from pathlib import Path

from leadcapture_common.logging import setup_logging

from domain.models import TrainingExample, TrainingStats
from exceptions import TrainingDataNotFoundError

logger = setup_logging()

MASTER_FILE = "master-training-set.jsonl"
PROMPT_FILE = "enhanced-prompt.txt"
RECORDING_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class TrainingRepository:
    """
    Stores one JSON file per recording plus an append-only master set.

    Keeping files rather than database rows lets the annotated set be
    exported and versioned independently of call records.
    """

    def __init__(self, directory: Path):
        self._directory = directory

    def save(self, example: TrainingExample) -> None:
        """
        Writes the example and appends it to the master training set.

        Args:
            example: The annotated recording.
        """
        self._directory.mkdir(parents=True, exist_ok=True)
        self._example_path(example.recording_id).write_text(
            example.model_dump_json(indent=2), encoding="utf-8"
        )

        master_entry = example.model_dump(
            mode="json", include={"recording_id", "marked_fields", "trained_at", "trained_by"}
        )
        with (self._directory / MASTER_FILE).open("a", encoding="utf-8") as master:
            master.write(json.dumps(master_entry) + "\n")

        logger.info("Training data saved", extra={"recording_id": example.recording_id})

    def get(self, recording_id: str) -> TrainingExample:
        """
        Raises:
            TrainingDataNotFoundError: If nothing was saved for the recording.
        """
        path = self._example_path(recording_id)
        if not path.is_file():
            raise TrainingDataNotFoundError(recording_id)
        return TrainingExample.model_validate_json(path.read_text(encoding="utf-8"))

    def delete(self, recording_id: str) -> None:
        path = self._example_path(recording_id)
        if not path.is_file():
            raise TrainingDataNotFoundError(recording_id)
        path.unlink()
        logger.info("Training data deleted", extra={"recording_id": recording_id})

    def list_all(self) -> list[TrainingExample]:
        """Returns all examples, most recently trained first."""
        if not self._directory.is_dir():
            return []
        examples = [
            TrainingExample.model_validate_json(path.read_text(encoding="utf-8"))
            for path in sorted(self._directory.glob("*.json"))
        ]
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        examples.sort(key=lambda e: _aware(e.trained_at) or oldest, reverse=True)
        return examples

    def stats(self) -> TrainingStats:
        field_counts: dict[str, int] = {}
        examples = self.list_all()
        for example in examples:
            for field, marks in example.marked_fields.items():
                field_counts[field] = field_counts.get(field, 0) + len(marks)

        return TrainingStats(
            total_recordings=len(examples),
            total_fields=sum(field_counts.values()),
            field_counts=field_counts,
            last_updated=datetime.now(timezone.utc),
        )

    def save_prompt(self, prompt: str) -> Path:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._directory / PROMPT_FILE
        path.write_text(prompt, encoding="utf-8")
        return path

    def load_prompt(self) -> str | None:
        path = self._directory / PROMPT_FILE
        return path.read_text(encoding="utf-8") if path.is_file() else None

    def _example_path(self, recording_id: str) -> Path:
        if not RECORDING_ID_PATTERN.match(recording_id):
            raise TrainingDataNotFoundError(recording_id)
        return self._directory / f"{recording_id}.json"


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
