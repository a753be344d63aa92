"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "Sankal Samwad API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'samwad.db'}"

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:4173"]

    # --- Uploads ---
    UPLOAD_DIR: str = str(BASE_DIR / "uploads")
    ALLOWED_UPLOAD_EXTENSIONS: list[str] = ["jpg", "jpeg", "png", "pdf", "doc", "docx"]
    MAX_GRIEVANCE_FILES: int = 10

    # --- Queue ---
    MINUTES_PER_POSITION: int = 10
    WAIT_REBROADCAST_SECONDS: int = 60    # 0 disables the periodic re-broadcast

    # --- Grievances ---
    DEFAULT_DISTRICT: str = "Uttarkashi"
    GRIEVANCE_RATE_LIMIT: int = 20
    GRIEVANCE_RATE_WINDOW: int = 60

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
