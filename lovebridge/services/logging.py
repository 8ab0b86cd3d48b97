from __future__ import annotations

"""Structured logging setup using structlog and orjson."""

import logging
import os
import sys
from typing import Any, MutableMapping

import orjson
import structlog


_SENSITIVE_EXACT = {"authorization", "api_key", "apikey", "token", "password", "secret"}
_SENSITIVE_SUFFIXES = ("_key", "_token", "_secret")


def _is_sensitive(key: str) -> bool:
    k = key.lower()
    return k in _SENSITIVE_EXACT or k.endswith(_SENSITIVE_SUFFIXES) or "secret" in k


def _mask(value: Any) -> str:
    raw = str(value)
    if len(raw) <= 4:
        return "***"
    return raw[:2] + "***"


def redact_secrets(_: Any, __: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """structlog processor: mask values of credential-like keys."""

    for key in list(event_dict.keys()):
        if key != "event" and _is_sensitive(key) and event_dict[key] is not None:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


def _orjson_dumps(obj: Any, default: Any | None = None, **_: Any) -> str:
    """Serializer compatible with structlog.JSONRenderer.

    structlog passes optional kwargs (e.g., default) to the serializer.
    orjson supports `default` callable; ignore other kwargs.
    """
    return orjson.dumps(
        obj,
        default=default,  # type: ignore[arg-type]
        option=orjson.OPT_SORT_KEYS | orjson.OPT_APPEND_NEWLINE,
    ).decode()


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog with JSON rendering and stdlib bridge.

    LOG_LEVEL env var overrides provided level.
    """
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        level = env_level
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]
    logging.basicConfig(level=numeric_level, handlers=handlers)
    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(serializer=_orjson_dumps),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger() -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger."""

    return structlog.get_logger()


def preview(text: str | None, limit: int = 50) -> str:
    """Short, single-line preview of user text for log lines."""

    if not text:
        return ""
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."
