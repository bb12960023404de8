"""
labels.py
Emotion class order and the result decoder.

The class order below is part of the model contract: output index i of
the network is the score for EMOTION_LABELS[i].
"""

import math
from typing import Dict, Optional, Sequence

EMOTION_LABELS = ("Angry", "Disgust", "Fear", "Happy", "Neutral", "Sad", "Surprise")
NUM_CLASSES = len(EMOTION_LABELS)
UNKNOWN_LABEL = "Unknown"


def _is_well_formed(output: Optional[Sequence[float]]) -> bool:
    if output is None:
        return False
    try:
        if len(output) != NUM_CLASSES:
            return False
        return all(math.isfinite(float(v)) for v in output)
    except (TypeError, ValueError):
        return False


def decode(output: Optional[Sequence[float]]) -> str:
    """
    Map a score vector to a single emotion label.

    Picks the highest score; on exact ties the lowest index wins.
    Anything that is not 7 finite numbers decodes to UNKNOWN_LABEL
    instead of raising, so a bad frame never takes down a live feed.
    """
    if not _is_well_formed(output):
        return UNKNOWN_LABEL

    best_idx = 0
    best_score = float(output[0])
    for idx in range(1, NUM_CLASSES):
        score = float(output[idx])
        # strict > keeps the first index on ties
        if score > best_score:
            best_idx, best_score = idx, score
    return EMOTION_LABELS[best_idx]


def scores_by_label(output: Optional[Sequence[float]]) -> Dict[str, float]:
    """{label: score} for a well-formed output, empty dict otherwise."""
    if not _is_well_formed(output):
        return {}
    return {label: float(score) for label, score in zip(EMOTION_LABELS, output)}
