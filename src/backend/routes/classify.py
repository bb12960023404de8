"""
Single image classification endpoint

Runs the same preprocess -> infer -> decode chain as the live pipeline
on one uploaded image.
"""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from typing import Dict, Optional
import logging
import threading
import time

from capture.frames import RawFrame
from pipeline.config import get_settings
from recognition.emotion_classifier import EmotionClassifier
from recognition.errors import FrameError, InferenceRuntimeError, StartupError
from recognition.labels import decode, scores_by_label
from recognition.preprocess import preprocess

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/classify", tags=["classify"])

# requests run on a thread pool; the model only ever sees one at a time
_infer_lock = threading.Lock()

# loaded on first use, released on app shutdown
_classifier: Optional[EmotionClassifier] = None
_load_lock = threading.Lock()


class ClassifyOut(BaseModel):
    label: str
    scores: Dict[str, float]
    latency_ms: float


def get_classifier() -> EmotionClassifier:
    """Load the model once, on first use. Concurrent first requests share one load."""
    global _classifier
    with _load_lock:
        if _classifier is None:
            settings = get_settings()
            _classifier = EmotionClassifier.from_path(settings.model_path, device=settings.device)
        return _classifier


def release_classifier() -> None:
    """Close the loaded model (if any); the next request loads it again."""
    global _classifier
    with _load_lock:
        classifier, _classifier = _classifier, None
    if classifier is not None:
        with _infer_lock:
            classifier.close()


def classifier_dependency() -> EmotionClassifier:
    try:
        return get_classifier()
    except StartupError as e:
        logger.error("Model unavailable: %s", e)
        raise HTTPException(status_code=503, detail=f"Model unavailable: {e}")


@router.post("", response_model=ClassifyOut)
def classify_image(
    image: UploadFile = File(...),
    classifier: EmotionClassifier = Depends(classifier_dependency),
):
    """
    Classify one uploaded image (JPEG, PNG, ...)

    Example:
    ```
    curl -F "image=@face.jpg" http://localhost:8000/classify
    ```
    """
    data = image.file.read()

    try:
        with RawFrame.from_encoded(data) as frame:
            tensor = preprocess(frame)
    except FrameError as e:
        raise HTTPException(status_code=400, detail=str(e))

    started = time.perf_counter()
    try:
        with _infer_lock:
            scores = classifier.infer(tensor)
    except InferenceRuntimeError as e:
        logger.error("Inference failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    latency_ms = (time.perf_counter() - started) * 1000.0

    return ClassifyOut(label=decode(scores), scores=scores_by_label(scores), latency_ms=round(latency_ms, 2))
