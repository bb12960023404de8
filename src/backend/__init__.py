"""
backend package

FastAPI label board for the live emotion pipeline.

Provides:
- GET /               → Health check
- POST /labels        → Receive a label from a running pipeline
- GET /labels/latest  → Most recent label
- GET /labels/stats   → Per-label counts (in memory only)
- POST /classify      → Classify one uploaded image

Run with: uvicorn backend.app:app --host 0.0.0.0 --port 8000
"""

from .app import app

__all__ = ["app"]

__version__ = "1.0.0"
