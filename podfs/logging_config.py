"""
Logging configuration for PodFS.

Every module logs through a child of the `podfs` logger
(`podfs.executor.kubectl`, `podfs.filesystem`, ...). Only `podfs` carries
a handler; children propagate to it and inherit its level unless an area
level is set:

    LOG_LEVEL=INFO                            # podfs and everything below it
    LOG_LEVELS=executor=DEBUG,auth=WARNING    # podfs.executor.*, podfs.auth

Health check requests are dropped from the uvicorn access log.
"""

import logging
import logging.config
import os
from typing import Any, Dict, Optional

ROOT_LOGGER = "podfs"


class HealthCheckFilter(logging.Filter):
    """Filter to suppress health check endpoint logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "uvicorn.access":
            message = record.getMessage()
            if "/health" in message and "GET" in message:
                return False
        return True


def _level(value: str, source: str) -> str:
    level = value.strip().upper()
    if level not in logging.getLevelNamesMapping():
        raise ValueError(f"{source}: unknown log level {value!r}")
    return level


def parse_area_levels(spec: Optional[str]) -> Dict[str, str]:
    """
    Parse "area=LEVEL,..." into logger names under podfs.

    "executor=debug" becomes {"podfs.executor": "DEBUG"}; a name already
    starting with "podfs." is taken as is.
    """
    levels: Dict[str, str] = {}
    for item in (spec or "").split(","):
        if not item.strip():
            continue
        area, sep, value = item.partition("=")
        area = area.strip()
        if not sep or not area:
            raise ValueError(f"LOG_LEVELS: expected area=LEVEL, got {item.strip()!r}")
        name = area if area.startswith(f"{ROOT_LOGGER}.") else f"{ROOT_LOGGER}.{area}"
        levels[name] = _level(value, "LOG_LEVELS")
    return levels


def get_logging_config(
    level: Optional[str] = None, area_levels: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Build the dictConfig for PodFS and uvicorn."""
    level = _level(level or os.getenv("LOG_LEVEL", "INFO"), "LOG_LEVEL")
    if area_levels is None:
        area_levels = parse_area_levels(os.getenv("LOG_LEVELS"))

    loggers: Dict[str, Dict[str, Any]] = {
        name: {"handlers": ["default"], "level": "INFO", "propagate": False}
        for name in ("uvicorn", "uvicorn.error")
    }
    loggers["uvicorn.access"] = {"handlers": ["access"], "level": "INFO", "propagate": False}
    loggers[ROOT_LOGGER] = {"handlers": ["default"], "level": level, "propagate": False}
    # No handlers of their own: records still reach the podfs handler
    for name, area_level in area_levels.items():
        loggers[name] = {"level": area_level, "propagate": True}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": HealthCheckFilter},
        },
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["health_check_filter"],
            },
        },
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": ["default"]},
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
