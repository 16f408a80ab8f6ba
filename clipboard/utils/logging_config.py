"""
Logging configuration for Jim's Clipboard
Provides structured logging with different levels and formatters
"""

import logging
import logging.handlers
import os
from logging import Filter

from flask import has_request_context, request

# Background work logged to scheduler.log
SCHEDULER_LOGGERS = (
    "clipboard.services.scheduler_service",
    "clipboard.services.live_game_poller",
)


class RequestContextFilter(Filter):
    """Add request context to log records"""

    def filter(self, record):
        if has_request_context():
            record.url = request.url
            record.remote_addr = request.remote_addr
            record.method = request.method
            record.user_agent = request.headers.get("User-Agent", "Unknown")
        else:
            record.url = "N/A"
            record.remote_addr = "N/A"
            record.method = "N/A"
            record.user_agent = "N/A"
        return True


class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
        "RESET": "\033[0m",  # Reset
    }

    def format(self, record):
        log_color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset_color = self.COLORS["RESET"]

        # Format a copy so file handlers don't see the escape codes
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{log_color}{record.levelname}{reset_color}"

        return super().format(record)


def _rotating_handler(path, level, fmt, max_bytes, backup_count):
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging(app):
    """
    Setup logging for the Flask application

    Args:
        app: Flask application instance
    """

    log_level = getattr(logging, app.config.get("LOG_LEVEL", "INFO").upper())

    # Configure root logger
    logging.basicConfig(level=log_level)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler with colors (for development)
    if app.config.get("LOG_TO_CONSOLE", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)

        if app.debug:
            console_formatter = ColoredFormatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s "
                "[%(filename)s:%(lineno)d]",
                datefmt="%H:%M:%S",
            )
        else:
            console_formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        console_handler.setFormatter(console_formatter)
        console_handler.addFilter(RequestContextFilter())
        root_logger.addHandler(console_handler)

    if app.config.get("LOG_TO_FILE", True):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)

        # Application log
        root_logger.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "clipboard.log"),
                log_level,
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s "
                "[%(url)s] [%(remote_addr)s] [%(method)s] [%(user_agent)s]",
                max_bytes=10 * 1024 * 1024,  # 10MB
                backup_count=5,
            )
        )

        # Errors and above
        root_logger.addHandler(
            _rotating_handler(
                os.path.join(log_dir, "errors.log"),
                logging.ERROR,
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s "
                "[%(pathname)s:%(lineno)d] [%(url)s] [%(remote_addr)s]",
                max_bytes=5 * 1024 * 1024,  # 5MB
                backup_count=3,
            )
        )

        # Background jobs and live game polling
        scheduler_handler = _rotating_handler(
            os.path.join(log_dir, "scheduler.log"),
            logging.INFO,
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            max_bytes=5 * 1024 * 1024,  # 5MB
            backup_count=3,
        )
        for name in SCHEDULER_LOGGERS:
            logging.getLogger(name).addHandler(scheduler_handler)

    # Configure third-party loggers
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("flask_limiter").setLevel(logging.WARNING)
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)

    # Set APScheduler logging to WARNING; every live game adds interval jobs
    logging.getLogger("apscheduler").setLevel(logging.WARNING)

    app.logger.info(f"Logging configured - Level: {logging.getLevelName(log_level)}")
