"""
Logging helpers for the Watchlist Screening Engine

Log setup driven by config.yaml and sanitising of customer-supplied text
before it is written to log lines.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from config_manager import LoggingConfig

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r'[\r\n\x00-\x1f\x7f-\x9f]')
_WHITESPACE = re.compile(r'\s+')

MAX_LOGGED_LENGTH = 500


def sanitize_for_logging(text: Optional[str]) -> str:
    """Sanitize user input for safe logging, preventing log injection

    Removes newlines, carriage returns, and other control characters
    that could be used to inject fake log entries.

    Args:
        text: User input text

    Returns:
        Sanitized text safe for logging
    """
    if not text:
        return ''
    sanitized = _CONTROL_CHARS.sub(' ', str(text))
    sanitized = _WHITESPACE.sub(' ', sanitized).strip()
    return sanitized[:MAX_LOGGED_LENGTH]


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure root logging handlers from the logging config section

    Existing handlers on the root logger are replaced, so calling this
    more than once does not duplicate output.

    Args:
        config: Logging configuration; defaults are used when omitted
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = logging.Formatter(config.format)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if config.console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    if config.file:
        log_path = Path(config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.setLevel(level)
    logger.debug("Logging configured: level=%s file=%s", config.level, config.file)
