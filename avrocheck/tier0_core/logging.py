"""
avrocheck.tier0_core.logging
─────────────────────────────
Structured logs for the avrocheck.* loggers, with credential redaction.

Minimal stack: structlog (stdout JSON or console)
Configure via: ValidatorConfig.log_level / log_format
(AVROCHECK_LOG_LEVEL, AVROCHECK_LOG_FORMAT=json|console)
"""
from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog

from avrocheck.tier0_core.config import ValidatorConfig, get_config

_ROOT_LOGGER = "avrocheck"


# ── Configuration ─────────────────────────────────────────────────────────────

def _configure_structlog(config: ValidatorConfig) -> None:
    level = getattr(logging, config.log_level)
    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _redact_processor,
    ]
    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    # Only the library's own logger tree; the host application owns the root.
    package_logger = logging.getLogger(_ROOT_LOGGER)
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False


# ── Redaction processor ───────────────────────────────────────────────────────

_REDACT_KEYS = frozenset({
    "password", "secret", "token", "api_key", "authorization", "credential",
})

_REDACTED = "[REDACTED]"

# user:pass@ in registry URLs
_URL_USERINFO = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def _redact_processor(
    logger: Any, method: str, event_dict: dict
) -> dict:
    """Strip sensitive fields and URL credentials from log records."""
    for key in list(event_dict.keys()):
        value = event_dict[key]
        if key.lower() in _REDACT_KEYS:
            event_dict[key] = _REDACTED
        elif isinstance(value, str) and "@" in value:
            event_dict[key] = _URL_USERINFO.sub(rf"\g<scheme>{_REDACTED}@", value)
    return event_dict


# ── Public API ────────────────────────────────────────────────────────────────

_configured = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structured logger bound to the given name.

    Usage:
        log = get_logger(__name__)
        log.info("registry.fetch.ok", schema_id=2, elapsed_ms=12.5)
    """
    global _configured
    if not _configured:
        _configure_structlog(get_config())
        _configured = True
    return structlog.get_logger(name or __name__)
