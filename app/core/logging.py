"""
Logging configuration.
A single console handler on the root logger; every module logs through
logging.getLogger(__name__).
"""
from __future__ import annotations

import logging.config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Safe to call more than once."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": level.upper(), "handlers": ["console"]},
            "loggers": {
                # SQL echo is controlled by the engine, not by LOG_LEVEL.
                "sqlalchemy.engine": {"level": "WARNING"},
                "passlib": {"level": "ERROR"},
            },
        }
    )
