"""
orchestrator.py
Per-frame emotion pipeline: RawFrame -> preprocess -> infer -> decode -> display.

Concurrency model:
- frames arrive on the frame source's thread through submit()
- one dedicated worker thread processes at most one frame at a time
- while a frame is in flight, newly submitted frames are released and
  dropped on the spot (single-slot mailbox, nothing is queued)
- labels leave through a LabelDispatcher, i.e. on yet another thread

There is no timeout around the model call. Slow calls are logged.
"""

import enum
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Optional

from capture.frames import RawFrame
from recognition.errors import FrameError, InferenceRuntimeError, TensorShapeError
from recognition.labels import decode
from recognition.preprocess import preprocess
from .display import LabelDispatcher, LabelSink

logger = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    IDLE = "idle"
    PROCESSING = "processing"


@dataclass
class PipelineStats:
    received: int = 0
    processed: int = 0
    dropped: int = 0
    failed: int = 0
    last_label: Optional[str] = None
    last_latency_ms: Optional[float] = None


class EmotionPipeline:
    def __init__(
        self,
        classifier,
        display: LabelSink,
        max_consecutive_failures: int = 0,
        slow_inference_ms: Optional[float] = None,
        on_fatal: Optional[Callable[[BaseException], None]] = None,
    ):
        """
        classifier: object with infer(tensor) -> scores and close()
                    (recognition.EmotionClassifier); owned by the pipeline
                    from here on and closed by shutdown()
        display:    callable taking one label string
        max_consecutive_failures: inference failures in a row after which
                    the engine is considered broken (0 = never)
        on_fatal:   called with the fatal error on a short-lived thread of its
                    own, so it may call shutdown()
        """
        self.classifier = classifier
        self.max_consecutive_failures = max_consecutive_failures
        self.slow_inference_ms = slow_inference_ms
        self.on_fatal = on_fatal

        self.stats = PipelineStats()
        self.fatal_error: Optional[BaseException] = None

        self._dispatcher = LabelDispatcher(display)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="emotion-worker")
        self._lock = threading.Lock()
        self._state = PipelineState.IDLE
        self._accepting = True
        self._in_flight: Optional[Future] = None
        self._consecutive_failures = 0
        self._shut_down = False
        self._stopped = threading.Event()

    # ------------------------------------------------------------
    # Frame source side
    # ------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    @property
    def accepting(self) -> bool:
        with self._lock:
            return self._accepting

    @property
    def failed(self) -> bool:
        return self.fatal_error is not None

    def submit(self, frame: RawFrame) -> bool:
        """
        Offer a frame. Returns True if it was taken for processing.
        A refused frame is released before returning.
        """
        with self._lock:
            self.stats.received += 1
            take = self._accepting and self._state is PipelineState.IDLE
            if take:
                self._state = PipelineState.PROCESSING
                self._in_flight = self._executor.submit(self._process, frame)
            else:
                self.stats.dropped += 1

        if not take:
            frame.release()
        return take

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the in-flight frame (if any) is done."""
        with self._lock:
            future = self._in_flight
        if future is None:
            return True
        done, _ = wait([future], timeout=timeout)
        return bool(done)

    # ------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------

    def _process(self, frame: RawFrame) -> None:
        label = None
        try:
            with frame:
                tensor = preprocess(frame)

            started = time.perf_counter()
            scores = self.classifier.infer(tensor)
            latency_ms = (time.perf_counter() - started) * 1000.0
            if self.slow_inference_ms is not None and latency_ms > self.slow_inference_ms:
                logger.warning("Slow inference: %.1f ms (threshold %.1f ms)", latency_ms, self.slow_inference_ms)

            label = decode(scores)
            self._record_success(label, latency_ms)
        except FrameError as e:
            self._record_failure()
            logger.warning("Dropped frame: %s", e)
        except InferenceRuntimeError as e:
            self._record_failure()
            if not e.recoverable:
                self._fail(e)
            elif self._too_many_inference_failures():
                self._fail(InferenceRuntimeError(
                    f"{self._consecutive_failures} consecutive inference failures, last: {e}",
                    recoverable=False,
                ))
            else:
                logger.warning("Inference failed, frame dropped: %s", e)
        except TensorShapeError as e:
            self._record_failure()
            self._fail(e)
        except Exception:
            self._record_failure()
            logger.exception("Unexpected error while processing frame")
        finally:
            with self._lock:
                self._state = PipelineState.IDLE

        if label is not None:
            self._dispatcher.post(label)

    def _record_success(self, label: str, latency_ms: float) -> None:
        with self._lock:
            self._consecutive_failures = 0
            self.stats.processed += 1
            self.stats.last_label = label
            self.stats.last_latency_ms = latency_ms

    def _record_failure(self) -> None:
        with self._lock:
            self.stats.failed += 1

    def _too_many_inference_failures(self) -> bool:
        with self._lock:
            self._consecutive_failures += 1
            limit = self.max_consecutive_failures
            return bool(limit) and self._consecutive_failures >= limit

    def _fail(self, error: BaseException) -> None:
        with self._lock:
            self._accepting = False
            if self.fatal_error is None:
                self.fatal_error = error
        logger.error("Pipeline halted: %s", error)
        if self.on_fatal is not None:
            threading.Thread(
                target=self._notify_fatal, args=(error,), name="emotion-fatal", daemon=True
            ).start()

    def _notify_fatal(self, error: BaseException) -> None:
        try:
            self.on_fatal(error)
        except Exception:
            logger.exception("on_fatal callback failed")

    # ------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------

    def shutdown(self) -> None:
        """
        Stop accepting frames, let the in-flight frame finish, flush the
        display and release the model. Safe to call more than once; later
        callers block until the first teardown has finished.
        """
        with self._lock:
            self._accepting = False
            first = not self._shut_down
            self._shut_down = True

        if not first:
            self._stopped.wait()
            return

        try:
            self._executor.shutdown(wait=True)
            self._dispatcher.close(wait=True)
            self.classifier.close()
        finally:
            self._stopped.set()
        logger.info(
            "Pipeline stopped: %d received, %d processed, %d dropped, %d failed",
            self.stats.received, self.stats.processed, self.stats.dropped, self.stats.failed,
        )

    def __enter__(self) -> "EmotionPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
