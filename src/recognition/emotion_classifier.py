import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
import torch
from torch import nn

from .errors import InferenceRuntimeError, TensorShapeError
from .model import load_model
from .preprocess import INPUT_LENGTH, INPUT_SIZE

logger = logging.getLogger(__name__)

# Runtime messages after which the device state can no longer be trusted
_FATAL_MARKERS = ("CUDA error", "device-side assert")


def resolve_device(device: str = "cuda") -> str:
    return "cuda" if (device == "cuda" and torch.cuda.is_available()) else "cpu"


class EmotionClassifier:
    """
    Thin synchronous adapter over the loaded model.

    One call to infer() is exactly one forward pass. The instance is not
    meant to be shared between threads; the pipeline calls it from its
    single worker only.
    """

    def __init__(self, model: nn.Module, device: str = "cpu"):
        self.device = device
        self.model: Optional[nn.Module] = model

    @classmethod
    def from_path(cls, weights_path: Union[str, Path], device: str = "cuda") -> "EmotionClassifier":
        device = resolve_device(device)
        return cls(load_model(weights_path, device=device), device=device)

    @property
    def closed(self) -> bool:
        return self.model is None

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        """
        Run the model on one InputTensor.

        Args:
            tensor: float32 array with exactly INPUT_LENGTH values

        Returns:
            float32 array of raw class scores (flattened model output)
        """
        if tensor is None or np.size(tensor) != INPUT_LENGTH:
            got = None if tensor is None else np.size(tensor)
            raise TensorShapeError(f"Input tensor must have {INPUT_LENGTH} values, got {got}")

        model = self.model
        if model is None:
            raise InferenceRuntimeError("Classifier is closed", recoverable=False)

        x = torch.from_numpy(np.asarray(tensor, dtype=np.float32).reshape(1, 1, INPUT_SIZE, INPUT_SIZE))
        try:
            with torch.no_grad():
                out = model(x.to(self.device))
            scores = out.detach().reshape(-1).cpu().numpy().astype(np.float32)
        except Exception as e:
            message = str(e)
            recoverable = not any(marker in message for marker in _FATAL_MARKERS)
            raise InferenceRuntimeError(f"Model execution failed: {message}", recoverable=recoverable) from e

        logger.debug("Model scores: %s", ", ".join(f"{s:.4f}" for s in scores))
        return scores

    def close(self) -> None:
        if self.model is None:
            return
        self.model = None
        if self.device == "cuda":
            torch.cuda.empty_cache()
        logger.info("Emotion classifier released")
