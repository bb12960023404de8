"""
model.py
Emotion model topology and the one-time artifact loader.

Accepted artifacts:
- a TorchScript archive (torch.jit.save), any topology honouring the
  1x1x48x48 -> 7 contract
- a state_dict for EmotionCNN below (torch.save(model.state_dict(), ...))
"""

import io
import logging
from pathlib import Path
from typing import Union

import torch
from torch import nn

from .errors import StartupError
from .labels import NUM_CLASSES
from .preprocess import INPUT_SIZE

logger = logging.getLogger(__name__)


class EmotionCNN(nn.Module):
    """Small FER-style CNN: 1x48x48 grayscale in, NUM_CLASSES scores out."""

    def __init__(self, num_classes: int = NUM_CLASSES):
        super().__init__()

        def block(c_in: int, c_out: int) -> nn.Sequential:
            return nn.Sequential(
                nn.Conv2d(c_in, c_out, kernel_size=3, padding=1),
                nn.BatchNorm2d(c_out),
                nn.ReLU(inplace=True),
                nn.MaxPool2d(2),
            )

        # 48 -> 24 -> 12 -> 6
        self.features = nn.Sequential(block(1, 32), block(32, 64), block(64, 128))
        self.classifier = nn.Sequential(
            nn.Flatten(),
            nn.Dropout(0.3),
            nn.Linear(128 * 6 * 6, 256),
            nn.ReLU(inplace=True),
            nn.Dropout(0.3),
            nn.Linear(256, num_classes),
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.classifier(self.features(x))


def _deserialize(data: bytes, device: str) -> nn.Module:
    try:
        return torch.jit.load(io.BytesIO(data), map_location=device)
    except Exception as jit_err:
        logger.debug("Not a TorchScript archive (%s), trying EmotionCNN state_dict", jit_err)

    try:
        state_dict = torch.load(io.BytesIO(data), map_location=device, weights_only=True)
        model = EmotionCNN()
        model.load_state_dict(state_dict)
        return model
    except Exception as e:
        raise StartupError(f"Model artifact is corrupt or unsupported: {e}") from e


def _check_contract(model: nn.Module, device: str) -> None:
    probe = torch.zeros(1, 1, INPUT_SIZE, INPUT_SIZE, device=device)
    try:
        with torch.no_grad():
            out = model(probe)
    except Exception as e:
        raise StartupError(f"Model rejected a 1x1x{INPUT_SIZE}x{INPUT_SIZE} input: {e}") from e

    if not isinstance(out, torch.Tensor) or out.numel() != NUM_CLASSES:
        shape = tuple(out.shape) if isinstance(out, torch.Tensor) else type(out).__name__
        raise StartupError(f"Model output {shape} does not provide {NUM_CLASSES} class scores")


def load_model(weights_path: Union[str, Path], device: str = "cpu") -> nn.Module:
    """
    Read the model file into memory, deserialize it and verify the
    input/output contract. Any failure raises StartupError.
    """
    path = Path(weights_path)
    if not path.is_file():
        raise StartupError(f"Model file not found: {path}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise StartupError(f"Could not read model file {path}: {e}") from e

    model = _deserialize(data, device)
    model.eval().to(device)
    _check_contract(model, device)

    logger.info("Loaded emotion model from %s on %s", path, device)
    return model
