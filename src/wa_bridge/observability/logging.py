"""
wa_bridge.observability.logging

Structured logging configuration for the bridge.

Responsibilities:
- Configure `structlog` to emit one JSON object per line on stdout.
- Mask credentials that end up in event fields (DSNs, passwords).
- Provide a small wrapper for obtaining bound loggers.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

MASK = "***"

# Field names whose values are never logged as-is.
SECRET_KEYS = frozenset({"password", "database_url", "dsn", "connection_address"})

# scheme://user:password@ ; greedy up to the last '@' so unencoded '@' in the
# password is covered too.
_DSN_PASSWORD = re.compile(r"(\b[a-z][a-z0-9+.-]*://[^:/@\s]*:)\S*@", re.IGNORECASE)


def configure_logging(*, service_name: str, level: str) -> None:
    """
    JSON logs on stdout; the bridge runs under a supervisor that collects them.
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    # Masking runs after contextvars are merged and before rendering.
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            mask_secrets,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def mask_credentials(value: str) -> str:
    return _DSN_PASSWORD.sub(rf"\g<1>{MASK}@", value)


def mask_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Last line of defence: callers are expected to log redacted addresses
    already (`wa_bridge.db.info.redact_address`).
    """

    for key, value in event_dict.items():
        if key in SECRET_KEYS and value is not None:
            event_dict[key] = MASK
        elif isinstance(value, str) and "://" in value:
            event_dict[key] = mask_credentials(value)
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# --- Module Notes -----------------------------------------------------------
# Request id, path and method are bound per request in
# `observability.middleware` and merged in by the first processor.
