"""
Structured logging for the tag creator using structlog.

Tag workers bind the tag uid and session mode through ``structlog.contextvars``,
so every event of one touch can be correlated. Byte values (uids, keys, dumps)
are rendered as hex before they reach a renderer.
"""

import logging
import sys
from typing import Any, cast

import structlog
from structlog.types import EventDict, Processor

from nfc_creator.core.config import Settings, get_settings

# Longer byte values are cut; a full Mifare dump is 1 KiB.
MAX_LOGGED_BYTES = 32


def render_bytes_as_hex(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    """Replace ``bytes`` values with spaced upper-case hex, truncated."""
    for key, value in event_dict.items():
        if isinstance(value, bytes | bytearray):
            text = bytes(value[:MAX_LOGGED_BYTES]).hex(" ").upper()
            if len(value) > MAX_LOGGED_BYTES:
                text += f" ... ({len(value)} bytes)"
            event_dict[key] = text
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structured logging for the tag creator.

    Development gets the colored console renderer, other environments get
    JSON lines. Output goes to stderr so the encoder CLI keeps stdout for
    message bytes.
    """
    settings = settings or get_settings()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        render_bytes_as_hex,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.environment == "development":
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
