"""
Logging setup shared by every module of the camera service.
Console output plus a rotating file under LOG_DIR (defaults to <repo>/logs).
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from app.config import settings

LOG_LEVEL = settings.LOG_LEVEL.upper()
LOG_DIR = settings.LOG_DIR or os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs"
)
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# httpx logs every request at INFO; the event store client would flood the log
_NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def _build_handlers() -> list:
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers = [logging.StreamHandler()]

    if settings.LOG_TO_FILE:
        os.makedirs(LOG_DIR, exist_ok=True)
        handlers.append(RotatingFileHandler(
            filename=os.path.join(LOG_DIR, "camera_service.log"),
            maxBytes=5 * 1024 * 1024,
            backupCount=10,
            encoding="utf-8",
        ))

    for handler in handlers:
        handler.setLevel(LOG_LEVEL)
        handler.setFormatter(fmt)
    return handlers


def _configure_root_logger():
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)
    for handler in _build_handlers():
        root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger. Call this at the top of every module."""
    _configure_root_logger()
    return logging.getLogger(name)
