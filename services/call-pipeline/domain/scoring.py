"""Deterministic completeness score for extracted fields."""

from typing import Any


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, dict)) and len(value) == 0:
        return False
    return True


def compute_confidence_score(data: dict[str, Any]) -> int:
    """
    Scores how complete an extraction is, from 0 to 100.

    Every key is counted, nested objects are walked as well, and list
    elements are not expanded. A field is filled when it holds a
    non-null, non-empty value. Empty lists and empty objects count as
    unfilled, unlike a plain null-or-empty-string check, so an extraction
    padded with empty collections does not score as complete.

    Args:
        data: Extracted structure as plain dicts.

    Returns:
        round(100 * filled / total), or 0 when there are no fields.
    """
    filled = 0
    total = 0

    def walk(node: dict[str, Any]) -> None:
        nonlocal filled, total
        for value in node.values():
            total += 1
            if _is_filled(value):
                filled += 1
            if isinstance(value, dict):
                walk(value)

    walk(data)
    if total == 0:
        return 0
    # round-half-up, not banker's rounding
    return int(100 * filled / total + 0.5)
