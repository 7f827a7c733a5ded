"""
Structured logging configuration using structlog.

Console output in development, JSON lines in production. Every service
module logs through ``structlog.get_logger(__name__)`` with key/value
context (user_id, split_event_id, tier, error) instead of formatted strings.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor


SENSITIVE_KEYS = {
    'password',
    'token',
    'push_token',
    'service_key',
    'authorization',
}


def filter_sensitive_data(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Redact credentials and push tokens before they reach a handler."""
    for key in SENSITIVE_KEYS:
        if key in event_dict:
            event_dict[key] = '***REDACTED***'
    return event_dict


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every entry with the service name."""
    event_dict.setdefault('app', 'split-settlement')
    return event_dict


def configure_logging(log_level: str = 'INFO', json_logs: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger it writes through.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        json_logs: Emit JSON lines (production) instead of console output
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
        filter_sensitive_data,
    ]

    if json_logs:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(message)s'))
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
