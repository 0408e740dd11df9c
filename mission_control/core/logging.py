"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; this configures the
root handler once at startup.
"""

from __future__ import annotations

import logging.config

from mission_control.core.config import settings


def configure_logging(level: str | None = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": level,
            },
            # uvicorn installs its own handlers; keep its level in step with ours
            "loggers": {
                "uvicorn": {"level": level},
                "uvicorn.access": {"level": level},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
