"""Logging setup for the engine and its HTTP surface."""
from __future__ import annotations

from logging.config import dictConfig
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from adaptive_training.config import Settings, get_settings

LOG_FILENAME = "adaptive_training.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

QUIET_LOGGERS = ("uvicorn.access", "httpx")

_configured = False


def _file_handler(log_dir: Path, level: str, max_bytes: int, backup_count: int) -> dict[str, Any]:
    handler: dict[str, Any] = {
        "filename": str(log_dir / LOG_FILENAME),
        "encoding": "utf-8",
        "formatter": "standard",
        "level": level,
    }
    if max_bytes:
        handler.update(
            {
                "class": "logging.handlers.RotatingFileHandler",
                "maxBytes": max_bytes,
                "backupCount": backup_count,
            }
        )
    else:
        handler["class"] = "logging.FileHandler"
    return handler


def build_logging_config(
    log_dir: Path,
    level: str = "INFO",
    max_bytes: int = 0,
    backup_count: int = 0,
) -> dict[str, Any]:
    """
    Build the ``dictConfig`` mapping.

    Engine modules log under ``adaptive_training`` at ``level``; the access
    loggers listed in ``QUIET_LOGGERS`` only report warnings.
    """
    loggers: dict[str, Any] = {"adaptive_training": {"level": level, "propagate": True}}
    loggers.update({name: {"level": "WARNING"} for name in QUIET_LOGGERS})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"standard": {"format": LOG_FORMAT}},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
            "file": _file_handler(log_dir, level, max_bytes, backup_count),
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["console", "file"]},
    }


def configure_logging(settings: Settings | None = None) -> None:
    """Configure engine logging once per process."""

    global _configured
    if _configured:
        return

    if settings is None:
        try:
            settings = get_settings()
        except ValidationError:
            # An invalid LOG_LEVEL in the environment falls back to the defaults.
            settings = Settings.model_construct()

    settings.log_dir.mkdir(parents=True, exist_ok=True)
    dictConfig(
        build_logging_config(
            settings.log_dir,
            settings.log_level,
            settings.log_max_bytes,
            settings.log_backup_count,
        )
    )
    _configured = True
