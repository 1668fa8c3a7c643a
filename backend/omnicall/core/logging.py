"""
OmniCall - Structured Logging

JSON or human-readable log lines carrying the request correlation id and
the provider call id of the webhook or call being handled.

Privacy:
    Structured ``data`` attached to a record is scrubbed before output:
    phone-like fields keep their last two digits, credentials are redacted.
    Free-text messages are the caller's responsibility (use
    mask_phone_number in the message arguments).
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from omnicall.telephony.privacy import mask_phone_number


# =============================================================================
# Context Variables
# =============================================================================

correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
call_id_var: ContextVar[Optional[str]] = ContextVar('call_id', default=None)


# =============================================================================
# Masking Utilities
# =============================================================================

PHONE_KEYS = ('phone', 'number', 'from', 'to', 'caller', 'callee')
SECRET_KEYS = ('password', 'token', 'secret', 'auth', 'signature')

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "watchfiles", "twilio.http_client")


def mask_call_id(cid: Optional[str]) -> Optional[str]:
    """Keep only the last 4 characters of a provider call id."""
    if not cid:
        return None
    return f"***{cid[-4:]}" if len(cid) > 4 else "***"


def _field_kind(key: str) -> Optional[str]:
    words = key.lower().split("_")
    if any(word in SECRET_KEYS for word in words):
        return "secret"
    if any(word in PHONE_KEYS for word in words):
        return "phone"
    return None


def mask_sensitive_data(data: dict) -> dict:
    """
    Recursively scrub a structured log payload.

    Keys are matched word by word (``to_number`` is phone-like,
    ``twilio_auth_token`` is a secret, ``total`` is neither).
    """
    masked = {}
    for key, value in data.items():
        kind = _field_kind(str(key))
        if kind == "secret":
            masked[key] = "[REDACTED]"
        elif kind == "phone":
            masked[key] = mask_phone_number(value) if isinstance(value, str) else "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive_data(value)
        else:
            masked[key] = value
    return masked


def _context_fields() -> Dict[str, str]:
    fields = {}
    correlation_id = correlation_id_var.get()
    if correlation_id:
        fields["correlation_id"] = correlation_id
    call_id = mask_call_id(call_id_var.get())
    if call_id:
        fields["call_id"] = call_id
    return fields


# =============================================================================
# Formatters
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    {
        "timestamp": "2025-01-01T00:00:00.000Z",
        "level": "INFO",
        "logger": "omnicall.softphone.session",
        "message": "Incoming call from ***67",
        "correlation_id": "req_abc123",
        "call_id": "***1234",
        "data": { ... }
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context_fields())

        data = getattr(record, 'data', None)
        if data:
            entry["data"] = mask_sensitive_data(data)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``2025-01-01 10:00:00 | INFO     | omnicall.x [call=***1234] | message``"""

    _labels = {"correlation_id": "req", "call_id": "call"}

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        context = ", ".join(
            f"{self._labels[key]}={value}" for key, value in _context_fields().items()
        )
        if context:
            context = f" [{context}]"

        line = f"{timestamp} | {record.levelname:<8} | {record.name}{context} | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


# =============================================================================
# Logger Setup
# =============================================================================

def setup_structured_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines (production) instead of human-readable ones
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# =============================================================================
# Context Manager
# =============================================================================

class LogContext:
    """
    Bind correlation and call ids for every log line in a block.

    Nested contexts restore the outer values on exit; a None argument
    leaves the current value in place.

    Usage:
        with LogContext(call_id=webhook.call_id):
            logger.info("Incoming call from %s", mask_phone_number(number))
    """

    def __init__(self, correlation_id: Optional[str] = None, call_id: Optional[str] = None):
        self._values: List[Tuple[ContextVar, Optional[str]]] = [
            (correlation_id_var, correlation_id),
            (call_id_var, call_id),
        ]
        self._tokens: List[Tuple[ContextVar, Token]] = []

    def __enter__(self):
        for var, value in self._values:
            if value:
                self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)
        return False
