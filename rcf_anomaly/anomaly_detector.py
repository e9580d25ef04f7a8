import logging
import numbers
from typing import Iterable, List, Sequence, Set

import numpy as np

from .exceptions import InvalidInput
from .models.anomaly import AnomalyResult

log = logging.getLogger(__name__)

SIGMA_MULTIPLIER = 2


def _as_scores(scores: Sequence[float]) -> np.ndarray:
    for index, score in enumerate(scores):
        # Numeric strings and booleans would otherwise be coerced by numpy
        if isinstance(score, (bool, np.bool_)) or not isinstance(score, numbers.Real):
            raise InvalidInput(f"Anomaly score at index {index} is not a real number: {score!r}")

    array = np.asarray(scores, dtype=float)
    if array.size == 0:
        raise InvalidInput("Cannot compute a score cutoff for an empty series")
    if not np.all(np.isfinite(array)):
        raise InvalidInput("Anomaly scores must be finite numbers")
    return array


def _cutoff(array: np.ndarray) -> float:
    mean = float(array.mean())
    # Population standard deviation (ddof=0)
    std = float(array.std())
    cutoff = mean + SIGMA_MULTIPLIER * std
    log.info("Anomaly score mean is: %s, standard deviation is: %s, cutoff is: %s", mean, std, cutoff)
    return cutoff


def score_cutoff(scores: Sequence[float]) -> float:
    """
    Returns mean + 2 * standard deviation of the given scores.

    Raises:
        InvalidInput: if scores are empty, non-numeric or not finite
    """
    return _cutoff(_as_scores(scores))


def find_anomalous_indices(scores: Sequence[float]) -> Set[int]:
    """
    Find anomalies from a list of anomaly scores based on a 2 sigma cutoff.

    The cutoff is the mean plus twice the population standard deviation of the
    scores. Every score strictly above the cutoff is anomalous, so a constant
    series never yields anomalies.

    Args:
        scores: Anomaly scores, one per datapoint

    Returns:
        Set of indices pointing to anomalous datapoints

    Raises:
        InvalidInput: if scores are empty, non-numeric or not finite
    """
    array = _as_scores(scores)
    cutoff = _cutoff(array)
    indices = {int(i) for i in np.flatnonzero(array > cutoff)}
    log.info("Number of anomalous datapoints found is: %d", len(indices))
    return indices


def indicator_series(anomalous_indices: Iterable[int], length: int) -> List[float]:
    """
    Maps anomalous indices to a 0/1 series of the given length, 1.0 marking an
    anomalous position.
    """
    series = [0.0] * length
    for index in anomalous_indices:
        if not 0 <= index < length:
            raise InvalidInput(f"Anomalous index {index} is outside a series of length {length}")
        series[index] = 1.0
    return series


def detect_anomalies(timestamps: Sequence[int], scores: Sequence[float]) -> List[AnomalyResult]:
    """
    Classify each score and align it with the timestamp of the datapoint it was
    computed for.

    Args:
        timestamps: Unix timestamps in milliseconds, one per score
        scores: Anomaly scores produced by the model

    Returns:
        List of AnomalyResult objects, in the original order
    """
    if len(timestamps) != len(scores):
        raise InvalidInput(
            f"Got {len(scores)} anomaly scores for {len(timestamps)} timestamps; "
            "both series must have the same length"
        )

    indicators = indicator_series(find_anomalous_indices(scores), len(scores))

    return [
        AnomalyResult(timestamp=timestamp, anomaly_score=float(score), is_anomaly=indicator == 1.0)
        for timestamp, score, indicator in zip(timestamps, scores, indicators)
    ]
