"""
Shared logging configuration for Book Club.

Usage:
    from logging_config import setup_logging
    logger = setup_logging("web_app")
"""

import logging
import os
import sys
import json
from datetime import datetime, timezone
from typing import Optional


class JSONFormatter(logging.Formatter):
    """JSON lines formatter for structured logging."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "service": self.service_name,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_data = getattr(record, 'extra_data', None)
        if extra_data is not None:
            log_entry["data"] = extra_data

        return json.dumps(log_entry)


class ServiceFormatter(logging.Formatter):
    """Standard formatter with a service prefix."""

    def __init__(self, service_name: str):
        # [web_app] 2026-01-26 19:45:00 - bookclub.services.books - INFO - Message
        super().__init__(
            fmt=f'[{service_name}] %(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    service_name: str,
    log_file: Optional[str] = None,
    use_json: Optional[bool] = None
) -> logging.Logger:
    """
    Configure the root logger for a Book Club process and return its service logger.

    Module loggers (``logging.getLogger(__name__)``) propagate to the root,
    so every ``bookclub.*`` message gets the same handlers and format.

    Args:
        service_name: Name of the service (e.g., "web_app")
        log_file: Optional log file path. Defaults to LOG_FILE; console only when unset.
        use_json: Whether to emit JSON lines. Defaults to LOG_FORMAT == "json".

    Returns:
        Logger named after the service.
    """
    log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, log_level_str, logging.INFO)

    if use_json is None:
        use_json = os.getenv('LOG_FORMAT', '').lower() == 'json'
    if log_file is None:
        log_file = os.getenv('LOG_FILE') or None

    formatter = JSONFormatter(service_name) if use_json else ServiceFormatter(service_name)

    root = logging.getLogger()
    root.setLevel(level)

    # Clear any existing handlers to avoid duplicates on reload
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return logging.getLogger(service_name)


def silence_noisy_loggers():
    """Silence commonly noisy third-party loggers."""
    noisy_loggers = [
        'watchfiles.main',
        'httpx',
        'httpcore',
        'asyncio',
    ]

    for logger_name in noisy_loggers:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

