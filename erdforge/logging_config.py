"""
erdforge Logging Configuration

Modules log through get_logger(); nothing is printed until setup_logging()
attaches a handler, which the CLI does. Two output styles:

- text: one line per record, ANSI colored when stderr is a terminal
- json: one object per line, for CI and log collectors

Context passed through ``extra`` (see CONTEXT_LABELS) is rendered by both.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

ROOT_LOGGER = "erdforge"

# extra= field -> label in text output; JSON output uses the field names
CONTEXT_LABELS = {
    'table_name': 'table',
    'operation': 'op',
    'file_path': 'file',
    'statement': None,  # JSON only, too long for a console line
}


def _context(record: logging.LogRecord):
    for field in CONTEXT_LABELS:
        if hasattr(record, field):
            yield field, getattr(record, field)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON for machine parsing."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


class ColoredFormatter(logging.Formatter):
    """Format log records as `[LEVEL] message [table=.., op=..]`, optionally colored."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_color and level in self.COLORS:
            prefix = f"{self.COLORS[level]}[{level}]{self.RESET}"
        else:
            prefix = f"[{level}]"

        parts = [f"{CONTEXT_LABELS[field]}={value}" for field, value in _context(record) if CONTEXT_LABELS[field]]
        suffix = f" [{', '.join(parts)}]" if parts else ""
        return f"{prefix} {record.getMessage()}{suffix}"


def level_for(verbose: int) -> int:
    """0 -> WARNING, 1 (-v) -> INFO, 2+ (-vv) -> DEBUG."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def build_handler(log_format: str = "text", no_color: bool = False,
                  stream: Optional[TextIO] = None) -> logging.Handler:
    stream = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(stream)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        use_color = not no_color and hasattr(stream, 'isatty') and stream.isatty()
        handler.setFormatter(ColoredFormatter(use_color=use_color))
    return handler


def setup_logging(
    verbose: int = 0,
    log_format: str = "text",
    no_color: bool = False
) -> logging.Logger:
    """
    Configure and return the erdforge logger.

    Calling it again replaces the previous handler instead of adding one.

    Args:
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
        log_format: Output format - "text" or "json"
        no_color: Disable ANSI colors in text output

    Returns:
        Configured logger instance
    """
    level = level_for(verbose)
    handler = build_handler(log_format, no_color)
    handler.setLevel(level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for a module: get_logger("parser") -> "erdforge.parser"."""
    if name:
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")
    return logging.getLogger(ROOT_LOGGER)
