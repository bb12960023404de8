"""
run_camera.py
Live camera -> emotion label loop.

Run with: emotion-camera [--model PATH] [--camera 0] [--no-window] [--backend]
"""

import argparse
import logging
import sys
from typing import List, Optional

import cv2

from capture.camera import CameraFrameSource
from recognition.emotion_classifier import EmotionClassifier
from recognition.errors import StartupError
from .config import Settings, get_settings
from .display import HttpLabelSink, LatestLabel, fan_out, log_label
from .frame_utils import FpsMeter, draw_label
from .orchestrator import EmotionPipeline

logger = logging.getLogger(__name__)

WINDOW_NAME = "Emotion Detection"

EXIT_OK = 0
EXIT_STARTUP = 1
EXIT_FATAL = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Live emotion recognition from a camera feed")
    parser.add_argument("--model", help="model file (TorchScript or EmotionCNN state_dict)")
    parser.add_argument("--camera", help="camera index or video file path")
    parser.add_argument("--device", help="cuda or cpu")
    parser.add_argument("--no-window", action="store_true", help="do not open a preview window")
    parser.add_argument("--backend", action="store_true", help="push labels to the label board")
    parser.add_argument("--max-frames", type=int, default=None, help="stop after N camera frames")
    return parser.parse_args(argv)


def _camera_source(value: Optional[str], settings: Settings):
    if value is None:
        return settings.camera_index
    return int(value) if value.isdigit() else value


def build_display(settings: Settings, latest: LatestLabel, use_backend: bool):
    sinks = [latest, log_label]
    if use_backend:
        from backend.integration_helper import check_backend_health

        if check_backend_health(settings.backend_url, timeout=settings.backend_timeout_s):
            print(f"✅ Label board reachable at {settings.backend_url}")
            sinks.append(HttpLabelSink(settings.backend_url, timeout=settings.backend_timeout_s))
        else:
            print("⚠️  Label board is not available - labels are shown locally only")
    return fan_out(*sinks)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    show_window = settings.show_window and not args.no_window
    model_path = args.model or settings.model_path

    print("🚀 Loading emotion model...")
    try:
        classifier = EmotionClassifier.from_path(model_path, device=args.device or settings.device)
    except StartupError as e:
        logger.error("Startup failed: %s", e)
        print(f"❌ Could not load model: {e}")
        return EXIT_STARTUP

    latest = LatestLabel()
    pipeline = EmotionPipeline(
        classifier,
        build_display(settings, latest, args.backend or settings.enable_backend),
        max_consecutive_failures=settings.max_consecutive_failures,
        slow_inference_ms=settings.slow_inference_ms,
    )
    source = CameraFrameSource(
        _camera_source(args.camera, settings),
        width=settings.camera_width,
        height=settings.camera_height,
    )

    fps = FpsMeter()
    frame_idx = 0
    exit_code = EXIT_OK

    try:
        source.open()
        print("🎬 Processing camera feed (press 'q' to quit)...")

        for image, frame in source.frames():
            pipeline.submit(frame)
            frame_idx += 1
            current_fps = fps.tick()

            if pipeline.failed:
                print(f"❌ Pipeline stopped: {pipeline.fatal_error}")
                exit_code = EXIT_FATAL
                break

            if show_window:
                label, _ = latest.get()
                cv2.imshow(WINDOW_NAME, draw_label(image, label, fps=current_fps))
                if cv2.waitKey(1) & 0xFF == ord("q"):
                    break

            if frame_idx % 100 == 0:
                print(f"📊 {frame_idx} frames, {pipeline.stats.processed} classified, {pipeline.stats.dropped} dropped")

            if args.max_frames is not None and frame_idx >= args.max_frames:
                break
    except StartupError as e:
        logger.error("Startup failed: %s", e)
        print(f"❌ {e}")
        exit_code = EXIT_STARTUP
    except KeyboardInterrupt:
        print("\n⏹️  Interrupted")
    finally:
        source.stop()
        pipeline.shutdown()
        source.close()
        if show_window:
            cv2.destroyAllWindows()

    stats = pipeline.stats
    print(f"\n✅ Done: {stats.processed} frames classified, {stats.dropped} dropped, {stats.failed} failed")
    if stats.last_label:
        print(f"🙂 Last emotion: {stats.last_label}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
