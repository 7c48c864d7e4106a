"""Structured JSON logging configuration."""
import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
SERVICE_NAME = "scrap-pickup-admin"


def _level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelNamesMapping().get(settings.LOG_LEVEL.upper(), logging.INFO)
    return logging.DEBUG if settings.APP_ENV == "development" else logging.INFO


def setup_logging() -> None:
    """JSON lines on stdout in production, plain text elsewhere.

    ``LOG_LEVEL`` overrides the per-environment default. SQLAlchemy engine
    chatter stays at WARNING unless the root level asks for DEBUG.
    """
    level = _level()
    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter(
            LOG_FORMAT,
            rename_fields={"asctime": "timestamp", "levelname": "level"},
            static_fields={"service": SERVICE_NAME, "env": settings.APP_ENV},
        ))
        logging.root.handlers = [handler]
        logging.root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    if level > logging.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
