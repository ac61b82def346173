"""
Logging configuration.

Plain text for development, one JSON object per line when
``HOTEL_LOG_FORMAT=json``.
"""
import logging
import logging.config
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from infrastructure.config import Settings


class BookingJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter carrying level, logger and environment"""

    def __init__(self, *args, environment: str = "development", **kwargs):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["environment"] = self.environment


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
            "json": {
                "()": BookingJsonFormatter,
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "environment": settings.ENVIRONMENT,
            },
        },
        "handlers": {
            "console": {
                "level": level,
                "class": "logging.StreamHandler",
                "formatter": "json" if settings.LOG_FORMAT == "json" else "standard",
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": level},
            "uvicorn.access": {"level": "WARNING"},
        },
    }


def setup_logging(settings: Settings) -> None:
    """Configure logging for the whole process"""
    logging.config.dictConfig(build_logging_config(settings))
    logging.getLogger(__name__).debug(
        "Logging configured", extra={"log_format": settings.LOG_FORMAT}
    )
