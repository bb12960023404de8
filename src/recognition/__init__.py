"""
recognition package

Everything between a raw frame and an emotion label:
- preprocess.py          RawFrame -> 48x48 normalised grayscale tensor
- model.py               model topology + one-time artifact loading
- emotion_classifier.py  synchronous inference adapter
- labels.py              class order + score decoding
- errors.py              error taxonomy shared by the whole pipeline
"""

from .emotion_classifier import EmotionClassifier
from .errors import (
    DecodeError,
    EmotionPipelineError,
    FrameError,
    InferenceRuntimeError,
    PreprocessError,
    StartupError,
    TensorShapeError,
)
from .labels import EMOTION_LABELS, UNKNOWN_LABEL, decode
from .preprocess import INPUT_LENGTH, INPUT_SIZE, LUMA_WEIGHTS, preprocess
