import json
from typing import Iterable, List, Sequence

from .exceptions import SerializationError

SCORE_FIELD = 'score'


def parse_timestamp_lines(lines: Sequence[str]) -> List[int]:
    """Converts lines holding one epoch millisecond timestamp each."""
    timestamps = []
    for number, line in enumerate(lines, start=1):
        try:
            timestamps.append(int(line.strip()))
        except ValueError:
            raise SerializationError(f"Line {number} is not a timestamp: {line!r}") from None
    return timestamps


def parse_score_lines(lines: Sequence[str]) -> List[float]:
    """
    Converts JSON lines written by the batch transform, e.g. {"score": 1.2},
    to anomaly score values.
    """
    scores = []
    for number, line in enumerate(lines, start=1):
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"Line {number} is not valid JSON: {exc}") from exc

        score = record.get(SCORE_FIELD) if isinstance(record, dict) else None
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise SerializationError(f"Line {number} has no numeric '{SCORE_FIELD}': {line!r}")
        scores.append(float(score))
    return scores


def format_lines(values: Iterable[object]) -> str:
    return '\n'.join(str(value) for value in values)
