"""
Logging configuration for the questionnaire service.
Structured console/file logging with the questionnaire session id attached.
"""

import functools
import logging
import os
import sys
import time
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

# Session id of the conversation currently being handled
session_id_var: ContextVar[Optional[str]] = ContextVar('session_id', default=None)

_logging_configured = False


class SessionFilter(logging.Filter):
    """Add the session id to log records"""
    def filter(self, record):
        record.session_id = session_id_var.get() or '-'
        return True


class StructuredFormatter(logging.Formatter):
    """[TIMESTAMP] [LEVEL] [SESSION] [MODULE] MESSAGE"""
    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        session_id = getattr(record, 'session_id', '-')
        line = f"[{timestamp}] [{record.levelname}] [{session_id}] [{record.name}] {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure application-wide logging. Safe to call more than once.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path of a log file written next to the console output
    """
    global _logging_configured

    if _logging_configured:
        return

    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    formatter = StructuredFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(SessionFilter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(SessionFilter())
        root_logger.addHandler(file_handler)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically called with __name__)."""
    return logging.getLogger(name)


def set_session_id(session_id: Optional[str]) -> None:
    """Bind a questionnaire session id to the current context."""
    session_id_var.set(session_id)


def get_session_id() -> Optional[str]:
    return session_id_var.get()


def log_performance(func):
    """Decorator to log function execution time"""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
            logger.info(f"{func.__qualname__} finished in {time.time() - start_time:.3f}s")
            return result
        except Exception as e:
            logger.warning(f"{func.__qualname__} failed after {time.time() - start_time:.3f}s: {e}")
            raise
    return wrapper
