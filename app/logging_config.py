"""
Logging configuration. Call setup_logging() once at startup.
"""
import logging
import logging.config
import sys
from typing import Any, Dict

# Third-party loggers held at WARNING to reduce noise
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy", "httpx", "httpcore", "urllib3")


def get_logging_config(log_level: str = "INFO") -> Dict[str, Any]:
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "default",
                "stream": sys.stdout,
            },
        },
        "loggers": {
            "app": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
    }
    for name in _QUIET_LOGGERS:
        config["loggers"][name] = {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        }
    return config


def setup_logging(log_level: str = "INFO"):
    logging.config.dictConfig(get_logging_config(log_level.upper()))
    logging.getLogger(__name__).info("Logging configured with level: %s", log_level.upper())
