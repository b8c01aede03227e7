"""Logging configuration for the gateway process."""

import logging.config
from pathlib import Path

from config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def build_logging_config(settings: Settings) -> dict:
    """dictConfig for console output plus optional daily info/error files."""
    handlers: dict[str, dict] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    }

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        for name, level in (("info", "INFO"), ("error", "ERROR")):
            handlers[f"{name}_file"] = {
                "class": "logging.handlers.TimedRotatingFileHandler",
                "formatter": "default",
                "level": level,
                "filename": str(log_dir / f"{name}.log"),
                "when": "midnight",
                "backupCount": 14,
                "encoding": "utf-8",
                "delay": True,
            }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
        },
        "handlers": handlers,
        "root": {
            "level": settings.log_level.upper(),
            "handlers": list(handlers),
        },
    }


def configure_logging(settings: Settings) -> None:
    if settings.log_dir:
        Path(settings.log_dir).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(settings))
