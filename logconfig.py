"""
Purpose: Logging setup for scripts and embedding applications.
What it does:
Structured JSON log lines with PIN / phone masking. Library modules only ever
call logging.getLogger(__name__); configuring handlers is left to entry points.
"""

import json
import logging
import re
from typing import Optional

SENSITIVE_PATTERNS = {
    r'"pin":\s*".*?"': '"pin": "***MASKED***"',
    r'"api_key":\s*".*?"': '"api_key": "***MASKED***"',
    r'"phone":\s*"\+?(\d{3})\d{5,}"': r'"phone": "\1********"',
}

SENSITIVE_KEYS = {"pin", "api_key", "apikey", "token", "secret", "password"}
PHONE_KEYS = {"phone", "customerphone"}

MAX_SCRUB_DEPTH = 10


class MaskingJsonFormatter(logging.Formatter):
    """
    One JSON object per record. `extra={"metadata": {...}}` is scrubbed
    recursively before serialisation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        metadata = getattr(record, "metadata", None)
        if isinstance(metadata, dict):
            log_record["metadata"] = scrub(metadata)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        try:
            output = json.dumps(log_record, default=str)
        except (TypeError, ValueError):
            log_record["metadata"] = str(metadata)
            output = json.dumps(log_record, default=str)

        for pattern, replacement in SENSITIVE_PATTERNS.items():
            output = re.sub(pattern, replacement, output)
        return output


def mask_phone(value: str) -> str:
    digits = str(value)
    if len(digits) <= 4:
        return "****"
    return digits[:3] + "*" * (len(digits) - 3)


def scrub(data, depth: int = 0):
    """Mask sensitive keys in nested dicts/lists, bounded by depth."""
    if depth > MAX_SCRUB_DEPTH:
        return "[MAX_DEPTH_EXCEEDED]"

    if isinstance(data, dict):
        scrubbed = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if lowered in SENSITIVE_KEYS and isinstance(value, (str, int)):
                scrubbed[key] = "***MASKED***"
            elif lowered in PHONE_KEYS and isinstance(value, str):
                scrubbed[key] = mask_phone(value)
            else:
                scrubbed[key] = scrub(value, depth + 1)
        return scrubbed
    if isinstance(data, list):
        return [scrub(item, depth + 1) for item in data]
    return data


def configure_logging(level: str = "INFO", stream=None, logger_name: Optional[str] = None) -> logging.Handler:
    """
    Attach a masking JSON handler to the root logger (or `logger_name`).
    Returns the handler so callers/tests can detach it.
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(MaskingJsonFormatter())

    target = logging.getLogger(logger_name)
    target.setLevel(getattr(logging, level.upper(), logging.INFO))
    target.addHandler(handler)
    return handler
