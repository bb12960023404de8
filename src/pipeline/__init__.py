"""
pipeline package

Handles the orchestration of the live emotion recognition workflow:
- Accepting camera frames with drop-if-busy backpressure
- Running preprocess -> inference -> decode on a single worker
- Forwarding labels to display collaborators without blocking
- Preview overlays and the camera runner
"""

from .config import Settings, get_settings
from .display import HttpLabelSink, LabelDispatcher, LatestLabel, fan_out, log_label
from .orchestrator import EmotionPipeline, PipelineState, PipelineStats
