import logging
import logging.config
from typing import Any

from private_reader.config import _env


def setup_logging(level: str | None = None) -> dict[str, Any]:
    """Configure logging for the application."""
    level = (level or _env("LOG_LEVEL", "INFO") or "INFO").upper()
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
        },
        "root": {"level": level, "handlers": ["console"]},
    }

    logging.config.dictConfig(config)
    return config
