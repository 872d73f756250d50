"""Logging infrastructure with request context."""
import os
import sys
import logging
from contextvars import ContextVar
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

_request_id: ContextVar[Optional[str]] = ContextVar("grantaudit_request_id", default=None)


def app_home() -> Path:
    """Directory for logs and local config (GRANTAUDIT_HOME or ~/.grantaudit)."""
    return Path(os.getenv("GRANTAUDIT_HOME", Path.home() / ".grantaudit"))


class RequestContextFilter(logging.Filter):
    """Add request context to log records."""

    def filter(self, record):
        """Add request_id to record."""
        record.request_id = _request_id.get() or "system"
        return True


class GrantAuditLogger:
    """Centralized logging manager."""

    def __init__(self, log_level: str = "INFO"):
        self.log_dir = app_home() / "logs"
        self.log_file = self.log_dir / "service.log"
        self.request_filter = RequestContextFilter()

        self.logger = logging.getLogger("grantaudit")
        self.logger.setLevel(getattr(logging, log_level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [request:%(request_id)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        # stdout carries the JSON report
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(self.request_filter)
        self.logger.addHandler(console_handler)

        # File handler with rotation (30 files, 10MB per file)
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                self.log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=30,
                encoding="utf-8"
            )
        except OSError as e:
            self.logger.warning(f"File logging disabled, cannot write to {self.log_dir}: {e}")
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(self.request_filter)
            self.logger.addHandler(file_handler)

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[GrantAuditLogger] = None


def get_logger(log_level: str = "INFO") -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = GrantAuditLogger(log_level)
    return _logger_instance.get_logger()


def set_log_level(log_level: str) -> None:
    """Change the level of the grantaudit logger."""
    get_logger().setLevel(getattr(logging, log_level.upper()))


def set_request_context(request_id: Optional[str]):
    """Bind the request id for log records emitted in the current context."""
    return _request_id.set(request_id)


def reset_request_context(token) -> None:
    """Restore the request id bound before set_request_context."""
    _request_id.reset(token)
