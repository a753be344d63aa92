"""
Logging setup — console plus server.log under LOG_DIR.
"""
import logging
import os
from datetime import datetime

from samwad.config import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the 'samwad' logger tree once and return it."""
    logger = logging.getLogger("samwad")
    if getattr(logger, "_samwad_configured", False):
        return logger

    logger.setLevel(logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper())
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    file_handler = logging.FileHandler(os.path.join(settings.LOG_DIR, "server.log"), encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger._samwad_configured = True
    return logger


def boot_banner(settings: Settings) -> str:
    return (
        f"\n{'='*60}\n"
        f"  {settings.APP_NAME} v{settings.APP_VERSION}\n"
        f"  TIME: {datetime.now().isoformat()}\n"
        f"  DATABASE: {settings.DATABASE_URL}\n"
        f"  UPLOADS: {settings.UPLOAD_DIR}\n"
        f"  DEBUG: {settings.DEBUG}\n"
        f"{'='*60}\n"
    )
