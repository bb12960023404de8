"""
capture package

Frame acquisition side of the pipeline:
- frames.py   RawFrame + pixel format names
- camera.py   cv2.VideoCapture backed frame source
"""

from .frames import RawFrame
from .camera import CameraFrameSource
