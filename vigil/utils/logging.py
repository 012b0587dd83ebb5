"""structlog setup: JSON (or console in debug) to stdout and a rotating file."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

import structlog

LOG_FILE_NAME = "vigil.log"


def _rotating_file_handler(log_dir: str, max_bytes: int, backup_count: int) -> Optional[RotatingFileHandler]:
    try:
        os.makedirs(log_dir, exist_ok=True)
        return RotatingFileHandler(
            os.path.join(log_dir, LOG_FILE_NAME),
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    except OSError:
        return None


def setup_logging(
    debug: bool = False,
    log_dir: str = "logs",
    log_max_bytes: int = 10_000_000,
    log_backup_count: int = 5,
) -> Optional[str]:
    """Configure structlog and the root logger for the service.

    Returns the path of the log file, or None when ``log_dir`` cannot be
    written and records go to stdout only.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    file_handler = _rotating_file_handler(log_dir, log_max_bytes, log_backup_count)
    if file_handler is not None:
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if isinstance(handler, RotatingFileHandler):
            handler.close()
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(handler)

    if file_handler is None:
        get_logger("utils.logging").warning("log_dir_unwritable", log_dir=log_dir)
        return None
    return file_handler.baseFilename


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a named structured logger."""
    return structlog.get_logger(name)
