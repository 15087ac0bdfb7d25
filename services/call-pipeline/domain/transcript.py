"""Transcript normalization."""

from domain.models import DiarizedTurns, PlainText


def normalize_transcript(transcript: PlainText | DiarizedTurns) -> str:
    """Flattens a transcript into the text sent for extraction."""
    if isinstance(transcript, DiarizedTurns):
        return "\n".join(f"{turn.speaker}: {turn.text}" for turn in transcript.turns)
    return transcript.text
