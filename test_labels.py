"""
test_labels.py
Score vector -> emotion label
"""

import numpy as np
import pytest

from recognition.labels import EMOTION_LABELS, UNKNOWN_LABEL, decode, scores_by_label


def test_class_order():
    assert EMOTION_LABELS == ("Angry", "Disgust", "Fear", "Happy", "Neutral", "Sad", "Surprise")


def test_happy():
    assert decode([0.1, 0.1, 0.1, 0.9, 0.1, 0.1, 0.1]) == "Happy"


def test_tie_goes_to_lowest_index():
    assert decode([0.5, 0.5, 0.1, 0.1, 0.1, 0.1, 0.1]) == "Angry"
    assert decode([0.0, 0.0, 0.0, 0.0, 0.0, 0.7, 0.7]) == "Sad"


def test_all_equal_is_first_class():
    assert decode([0.2] * 7) == "Angry"


def test_unnormalised_and_negative_scores():
    assert decode(np.array([-3.0, -1.0, -2.0, -5.0, -4.0, -0.5, -9.0], dtype=np.float32)) == "Sad"
    assert decode([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 42.0]) == "Surprise"


@pytest.mark.parametrize("output", [None, [], [0.1, 0.2, 0.3], [0.1] * 8, "abcdefg"])
def test_malformed_output_is_unknown(output):
    assert decode(output) == UNKNOWN_LABEL


def test_non_finite_output_is_unknown():
    assert decode([0.1, float("nan"), 0.1, 0.9, 0.1, 0.1, 0.1]) == UNKNOWN_LABEL
    assert decode([0.1, float("inf"), 0.1, 0.9, 0.1, 0.1, 0.1]) == UNKNOWN_LABEL


def test_scores_by_label():
    scores = scores_by_label(np.arange(7, dtype=np.float32))
    assert list(scores) == list(EMOTION_LABELS)
    assert scores["Surprise"] == 6.0
    assert scores_by_label([1.0, 2.0]) == {}
