"""
Logging Setup

Standard library logging for the service. Audit events pass structured
fields through ``extra``; the formatter appends them to each line.
"""

import logging
from typing import Optional

_RESERVED = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class KeyValueFormatter(logging.Formatter):
    """Formatter that renders ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if fields:
            line += " " + " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return line


def configure_logging(level: str = "INFO", handler: Optional[logging.Handler] = None) -> logging.Logger:
    """
    Configure the ``authcore`` logger hierarchy.

    Args:
        level: Log level name.
        handler: Optional handler; defaults to stderr.

    Returns:
        logging.Logger: The configured package logger.
    """
    root = logging.getLogger("authcore")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = handler or logging.StreamHandler()
    handler.setFormatter(
        KeyValueFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    root.handlers = [handler]
    root.propagate = False
    return root
