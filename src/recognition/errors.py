"""
errors.py
Exception taxonomy for the emotion inference pipeline.

Per-frame errors (FrameError, recoverable InferenceRuntimeError) are
absorbed by the orchestrator: the frame is dropped and the next one is
processed. StartupError, TensorShapeError and unrecoverable
InferenceRuntimeError are surfaced to whoever owns the pipeline.
"""


class EmotionPipelineError(Exception):
    """Base class for every error raised by this project."""


class StartupError(EmotionPipelineError):
    """Model artifact (or camera) could not be brought up. Fatal."""


class FrameError(EmotionPipelineError):
    """A single frame could not be turned into an input tensor."""


class DecodeError(FrameError):
    """Raw buffer is not a valid image encoding / pixel layout."""


class PreprocessError(FrameError):
    """Resize or grayscale conversion failed (e.g. zero-sized frame)."""


class InferenceRuntimeError(EmotionPipelineError):
    """The underlying model runtime reported an execution fault."""

    def __init__(self, message: str, recoverable: bool = True):
        super().__init__(message)
        self.recoverable = recoverable


class TensorShapeError(EmotionPipelineError, ValueError):
    """Input tensor has the wrong length. Programmer error, never per-frame."""
