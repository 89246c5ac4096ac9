"""
Centralized logging configuration for the application.

All output goes to stderr; stdout carries the MCP stdio protocol.
"""

import logging
import sys
from typing import Optional

from .config import AppConfig
from .redaction import redact, scrub

PACKAGE_LOGGER = 'memoryrelay_mcp'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_LEVEL_ALIASES = {'warn': 'WARNING'}


def resolve_level(level: str) -> int:
    """Map a configured level name (debug/info/warn/warning/error) to a logging constant."""
    name = _LEVEL_ALIASES.get(level.lower(), level.upper())
    return getattr(logging, name, logging.INFO)


class RedactingFormatter(logging.Formatter):
    """Formatter that strips secrets from the fully rendered record, traceback included."""

    def __init__(self, fmt: str = LOG_FORMAT, secret: Optional[str] = None):
        super().__init__(fmt)
        self.secret = secret

    def format(self, record: logging.LogRecord) -> str:
        return scrub(redact(super().format(record), self.secret))


def setup_logging(config: AppConfig, stream=None) -> logging.Logger:
    """
    Setup centralized logging configuration. Call once at startup.

    Args:
        config: AppConfig instance; its API key is masked in every line
        stream: Output stream (defaults to sys.stderr)

    Returns:
        The package logger
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(RedactingFormatter(secret=config.client.api_key))

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(resolve_level(config.log_level))
    # Replace handlers from an earlier call, keep anything else attached to the logger
    for existing in [h for h in logger.handlers if isinstance(h.formatter, RedactingFormatter)]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False

    # httpx logs full request lines at INFO/DEBUG
    for name in ('httpx', 'httpcore'):
        if logging.getLogger(name).level < logging.WARNING:
            logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package hierarchy.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance; level and handlers are inherited from setup_logging()
    """
    return logging.getLogger(name)
