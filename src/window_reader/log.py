"""Logging configuration using structlog.

Console output with aligned 3-letter level names. Lines logged inside a
hotkey cycle carry the cycle number bound with cycle_context():
    12:30:45 INF window captured title=VRChat width=1280 height=720 cycle=3
    12:30:47 WRN could not save last capture err="permission denied" cycle=3
    12:30:48 ERR translation failed err=timeout cycle=4
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime

import structlog
from structlog.contextvars import bound_contextvars, merge_contextvars

LEVEL_NAMES = {
    "debug": "DBG",
    "info": "INF",
    "warning": "WRN",
    "error": "ERR",
    "critical": "CRT",
}

# Set by configure()
_debug_enabled = False


def _level_to_3letter(logger, method_name, event_dict):
    """Convert log level to 3-letter abbreviation."""
    level = event_dict.get("level", method_name)
    event_dict["level"] = LEVEL_NAMES.get(level, level.upper()[:3])
    return event_dict


def _format_timestamp(logger, method_name, event_dict):
    """Add timestamp in HH:MM:SS format."""
    event_dict["timestamp"] = datetime.now().strftime("%H:%M:%S")
    return event_dict


def _render_kv_pairs(logger, method_name, event_dict):
    """Render event dict as 'timestamp LEVEL message key=value ...' string.

    Values containing spaces are quoted; keys starting with '_' are hidden.
    """
    timestamp = event_dict.pop("timestamp", "")
    level = event_dict.pop("level", "???")
    event = event_dict.pop("event", "")

    kv_parts = []
    for key, value in event_dict.items():
        if key.startswith("_"):
            continue
        if isinstance(value, str) and " " in value:
            kv_parts.append(f'{key}="{value}"')
        else:
            kv_parts.append(f"{key}={value}")

    kv_str = " ".join(kv_parts)
    if kv_str:
        return f"{timestamp} {level} {event} {kv_str}"
    return f"{timestamp} {level} {event}"


def configure(level: str = "INFO", debug: bool = False) -> None:
    """Configure structlog for console output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        debug: If True, sets level to DEBUG.
    """
    global _debug_enabled
    if debug:
        level = "DEBUG"
    _debug_enabled = level.upper() == "DEBUG"

    processors = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        _format_timestamp,
        _level_to_3letter,
        _render_kv_pairs,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger() -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger()


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled."""
    return _debug_enabled


@contextmanager
def cycle_context(cycle: int):
    """Tag every log line in the current thread with a cycle number."""
    with bound_contextvars(cycle=cycle):
        yield
