from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from pipeline.config import get_settings
from .routes import board, classify_router, labels_router, release_classifier

logger = logging.getLogger(__name__)

# ===========================
# Load Settings
# ===========================
settings = get_settings()

app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version
)

# CORS with settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(labels_router)
app.include_router(classify_router)


# ===========================
# Routes
# ===========================

@app.on_event("shutdown")
def shutdown_event():
    """Release the classification model"""
    release_classifier()
    logger.info("Label board stopped, model released")


@app.get("/")
def healthcheck():
    """Health check"""
    stats = board.stats()
    return {
        "status": "ok",
        "service": settings.api_title,
        "version": settings.api_version,
        "labels_received": stats.total,
        "latest_label": stats.latest.label if stats.latest else None,
        "model_path": settings.model_path,
    }
