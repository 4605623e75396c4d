"""
Centralized Logging Configuration

Structured JSON logs in production, colored human-readable logs otherwise.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from flask import Flask, has_request_context, request


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production.

    One JSON object per line so log aggregators can parse it directly.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if has_request_context():
            log_data["request"] = {
                "method": request.method,
                "path": request.path,
                "remote_addr": request.remote_addr,
            }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Errors carry their source location
        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """Human-readable formatter with level colors for development."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, '')
        timestamp = datetime.now(timezone.utc).strftime('%H:%M:%S')

        log_parts = [
            f"{color}{record.levelname:8s}{self.RESET}",
            timestamp,
            f"{record.name:24s}",
            record.getMessage(),
        ]
        if has_request_context():
            log_parts.append(f"[{request.method} {request.path}]")

        message = " | ".join(log_parts)
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def configure_logging(app: Flask) -> None:
    """
    Configure logging for the Flask application.

    Reads FLASK_ENV and LOG_LEVEL from ``app.config``: JSON output when the
    environment is production, colored output otherwise.
    """
    env = app.config.get("FLASK_ENV", "development")
    log_level_str = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JsonFormatter() if env == 'production' else ColoredFormatter())
    root_logger.addHandler(console_handler)

    app.logger.setLevel(log_level)

    # Reduce noise from verbose libraries
    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    app.logger.info(f"Logging configured - Environment: {env}, Level: {log_level_str}")
