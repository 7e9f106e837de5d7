"""
Structured logging setup for the users service
"""
import logging

import structlog

from config import ENV_LOCAL, ENV_PROD


def setup_logging(env):
    """Configure structlog for the given environment and return a logger.

    local renders human-readable lines at DEBUG, dev renders JSON at DEBUG,
    prod renders JSON at INFO. Every event carries the ``env`` field.
    """
    level = logging.INFO if env == ENV_PROD else logging.DEBUG
    renderer = (
        structlog.dev.ConsoleRenderer()
        if env == ENV_LOCAL
        else structlog.processors.JSONRenderer()
    )

    def add_env(_logger, _method_name, event_dict):
        event_dict.setdefault('env', env)
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_env,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt='iso'),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger('users_service')
