"""Central logging helpers"""
from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import structlog
import structlog.stdlib

from huestream.config import settings

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
# httpx logs every request line at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")
_SECRET_KEYS = ("client_key", "psk", "identity", "username")


def redact_secrets(logger, method_name, event_dict):
    """Mask credentials so they never reach a log file"""
    for key in _SECRET_KEYS:
        if event_dict.get(key):
            event_dict[key] = "***"
    return event_dict


def _build_file_handler(component: str) -> RotatingFileHandler:
    log_dir: Path = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"{component}.log"
    handler = RotatingFileHandler(log_path, maxBytes=5 * 1024 * 1024, backupCount=5)
    handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
    return handler


def setup_logging(
    component: str = "huestream",
    level: int = logging.INFO,
    log_to_file: bool = True,
    quiet_level: int = logging.WARNING,
) -> None:
    """
    Configure structlog + stdlib logging for a component.

    The HTTP client libraries are held at ``quiet_level`` unless ``level`` is
    stricter, so REST arm/disarm calls do not flood the stream logs.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_to_file:
        handlers.append(_build_file_handler(component))

    logging.basicConfig(level=level, handlers=handlers, format=_DEFAULT_FORMAT)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, quiet_level))

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger(__name__).info("logging_initialized", extra={"component": component})
