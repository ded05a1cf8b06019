"""
functions/utils/logging_setup.py

structlog configuration for the service.

Every log event passes through `redact_key_material` before rendering, so a
PEM block or a long base64 blob that ends up in an event field (for example
inside an error message) is replaced instead of written out.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, Dict

import structlog
from structlog.stdlib import LoggerFactory

from functions.utils.settings import Settings

_PEM_BLOCK = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?(-----END [A-Z ]*PRIVATE KEY-----|$)",
    re.DOTALL,
)
_BASE64_BLOB = re.compile(r"[A-Za-z0-9+/]{120,}={0,2}")

REDACTED_PEM = "[PRIVATE_KEY_REDACTED]"
REDACTED_BLOB = "[BASE64_REDACTED]"


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        value = _PEM_BLOCK.sub(REDACTED_PEM, value)
        return _BASE64_BLOB.sub(REDACTED_BLOB, value)
    if isinstance(value, dict):
        return {k: _redact(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    if isinstance(value, tuple):
        return tuple(_redact(v) for v in value)
    return value


def redact_key_material(
    logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Structlog processor: scrub private key material from every field."""
    return {k: _redact(v) for k, v in event_dict.items()}


def setup_logging(settings: Settings) -> None:
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_key_material,
            structlog.processors.JSONRenderer()
            if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
