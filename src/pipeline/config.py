"""
Configuration management using environment variables (EMOTION_* or .env)
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    """Pipeline, camera and label board settings"""

    # Model
    model_path: str = "models/emotion_cnn.pt"
    device: str = "cuda"                    # falls back to cpu when CUDA is missing

    # Camera (front/default camera is index 0)
    camera_index: int = 0
    camera_width: int = 640
    camera_height: int = 480
    show_window: bool = True

    # Pipeline
    slow_inference_ms: Optional[float] = 250.0
    max_consecutive_failures: int = 0       # 0 disables the limit
    log_level: str = "INFO"

    # Label board (backend) connection
    enable_backend: bool = False
    backend_url: str = "http://localhost:8000"
    backend_timeout_s: float = 2.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    api_title: str = "Live Emotion Label Board"
    api_version: str = "1.0.0"
    api_description: str = "Receives live emotion labels and classifies single images"
    allowed_origins: str = "http://localhost:3000,http://localhost:8501"

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="EMOTION_", case_sensitive=False, extra="ignore"
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated origins into list"""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()
