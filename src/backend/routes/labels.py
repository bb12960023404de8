"""
Live label endpoints (the remote display for the camera pipeline)

Labels are kept in memory only: latest value plus per-label counts.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, field_validator
from typing import Dict, Optional
from datetime import datetime, timezone
import threading

from recognition.labels import EMOTION_LABELS, UNKNOWN_LABEL

router = APIRouter(prefix="/labels", tags=["labels"])

VALID_LABELS = set(EMOTION_LABELS) | {UNKNOWN_LABEL}


class LabelIn(BaseModel):
    label: str
    timestamp_utc: Optional[str] = None     # ISO8601, filled in when missing
    source_id: Optional[str] = None

    @field_validator("label")
    @classmethod
    def label_must_be_known(cls, v: str) -> str:
        if v not in VALID_LABELS:
            raise ValueError(f"unknown emotion label {v!r}")
        return v


class LabelOut(LabelIn):
    received_utc: str


class LabelStats(BaseModel):
    total: int
    counts: Dict[str, int]
    latest: Optional[LabelOut] = None


class LabelBoard:
    """Latest label + counts, shared by all requests."""

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self.latest: Optional[LabelOut] = None
            self.counts: Dict[str, int] = {label: 0 for label in sorted(VALID_LABELS)}

    def record(self, item: LabelIn) -> LabelOut:
        now = datetime.now(timezone.utc).isoformat()
        out = LabelOut(
            label=item.label,
            timestamp_utc=item.timestamp_utc or now,
            source_id=item.source_id,
            received_utc=now,
        )
        with self._lock:
            self.latest = out
            self.counts[item.label] += 1
        return out

    def stats(self) -> LabelStats:
        with self._lock:
            return LabelStats(total=sum(self.counts.values()), counts=dict(self.counts), latest=self.latest)


board = LabelBoard()


@router.post("", response_model=LabelOut)
def post_label(item: LabelIn):
    """Receive one label from a running pipeline"""
    return board.record(item)


@router.get("/latest", response_model=LabelOut)
def latest_label():
    """Most recent label"""
    if board.latest is None:
        raise HTTPException(status_code=404, detail="No label received yet")
    return board.latest


@router.get("/stats", response_model=LabelStats)
def label_stats():
    """Per-label counts since the server started"""
    return board.stats()
