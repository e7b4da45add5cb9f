#!/usr/bin/env python3
"""
livetype Logging Configuration

Centralized logging setup for consistent formatting across the client.
Supports both development (colored console) and production (plain console + file) modes.

Usage:
    from shared.log import get_logger

    logger = get_logger(__name__)
    logger.info("Connecting...")
    logger.warning("Dropped frame", extra={"msg_type": "typing", "username": "bob"})
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Optional, Dict, Any
import os


LOG_LEVEL_ENV = "LIVETYPE_LOG_LEVEL"
LOG_DIR_ENV = "LIVETYPE_LOG_DIR"


# ========================================
#           LOGGING FORMATTERS
# ========================================

class ColoredFormatter(logging.Formatter):
    """Colored formatter for console output"""

    # ANSI Color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"

        return super().format(record)


class ContextFormatter(logging.Formatter):
    """Prefixes the message with chat context passed through ``extra``"""

    def format(self, record: logging.LogRecord) -> str:
        context = []

        if hasattr(record, 'client_id') and record.client_id:
            context.append(f"client={str(record.client_id)[:8]}")
        if hasattr(record, 'username'):
            context.append(f"user={record.username}")
        if hasattr(record, 'msg_type'):
            context.append(f"msg={record.msg_type}")
        if hasattr(record, 'endpoint'):
            context.append(f"endpoint={record.endpoint}")

        if context:
            context_str = f"[{' '.join(context)}] "
            record.msg = f"{context_str}{record.msg}"

        return super().format(record)


# ========================================
#           LOGGING CONFIGURATION
# ========================================

_loggers_configured = set()


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger for the given module.

    Args:
        name: Usually __name__ from the calling module
        level: Override log level ("DEBUG", "INFO", "WARNING", "ERROR")

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure each logger once
    if name not in _loggers_configured:
        _configure_logger(logger, level)
        _loggers_configured.add(name)

    return logger


def _configure_logger(logger: logging.Logger, level: Optional[str] = None) -> None:
    """Configure a logger with appropriate handlers and formatters"""

    logger.setLevel(_get_log_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if _is_development():
        _add_console_handler(logger, colored=True)
    else:
        # Production: plain console + file logging
        _add_console_handler(logger, colored=False)
        _add_file_handler(logger)

    # Prevent duplicate messages from parent loggers
    logger.propagate = False


def _get_log_level(level: Optional[str] = None) -> int:
    """Determine appropriate log level"""

    level = level or os.getenv(LOG_LEVEL_ENV)
    if level:
        return getattr(logging, level.upper(), logging.INFO)

    # Default based on environment
    return logging.DEBUG if _is_development() else logging.INFO


def _is_development() -> bool:
    """Detect if we're in development mode"""
    return (
        os.getenv('PYTHON_ENV', '').lower() in ['dev', 'development'] or
        'pytest' in sys.modules
    )


def _add_console_handler(logger: logging.Logger, colored: bool = True) -> None:
    """Add console handler with appropriate formatter"""

    fmt = '[%(levelname)-8s][%(asctime)s][%(name)-5s]: %(message)s'
    # stderr keeps log lines out of the chat transcript on stdout
    handler = logging.StreamHandler(sys.stderr)

    if colored and _supports_color():
        formatter = ColoredFormatter(fmt=fmt, datefmt='%H:%M:%S')
    else:
        formatter = ContextFormatter(fmt=fmt, datefmt='%Y-%m-%d %H:%M:%S')

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _add_file_handler(logger: logging.Logger) -> None:
    """Add file handler for production logging"""

    log_dir = Path(os.getenv(LOG_DIR_ENV, "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_dir / "livetype.log")
    formatter = ContextFormatter(
        fmt='%(asctime)s | %(name)-30s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    handler.setFormatter(formatter)
    logger.addHandler(handler)


def _supports_color() -> bool:
    """Check if terminal supports color output"""

    # stderr must be a terminal
    if not (hasattr(sys.stderr, "isatty") and sys.stderr.isatty()):
        return False

    if os.getenv("TERM", "") == "dumb":
        return False

    if sys.platform == "win32":
        return os.getenv("ANSICON") is not None or os.getenv("WT_SESSION") is not None or os.getenv("TERM_PROGRAM") == "vscode" or "WindowsTerminal" in os.getenv("TERM", "")

    return True


# ========================================
#           CONVENIENCE FUNCTIONS
# ========================================

def configure_root_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the entire application.
    Call this once at application startup.

    Module loggers created through get_logger() keep their own handlers,
    so their level is updated here as well.
    """
    root_logger = logging.getLogger()
    _configure_logger(root_logger, level)
    for name in _loggers_configured:
        logging.getLogger(name).setLevel(_get_log_level(level))


def log_chat_event(logger: logging.Logger, level: str, message: str,
                   frame: Optional[Dict[str, Any]] = None,
                   **context: Any) -> None:
    """
    Log a chat protocol event with structured context.

    Example:
        log_chat_event(logger, "debug", "Rendering preview",
                       frame={"type": "typing", "username": "bob"})
    """

    extra_context: Dict[str, Any] = {}

    if frame:
        extra_context['msg_type'] = frame.get('type')
        if frame.get('username') is not None:
            extra_context['username'] = frame.get('username')
        if frame.get('clientId') is not None:
            extra_context['client_id'] = frame.get('clientId')

    extra_context.update(context)

    log_func = getattr(logger, level.lower())
    log_func(message, extra=extra_context)
