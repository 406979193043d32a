"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__));
Logfire is configured once at startup and service functions open spans with
the ``span`` helper.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", owner_id="123", quest_id="daily_3_done")
"""

import logging

import logfire

from questlist.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Logs are only shipped when a token is configured; otherwise spans are local no-ops.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="questlist",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("task_service.create_task"):
            ...
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (owner_id, task_id, claim_key, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_user_context(
    logger: logging.Logger,
    level: str,
    message: str,
    owner_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with the owning user's id attached.

    Usage:
        log_with_user_context(logger, "info", "Quest claimed", owner_id="123", claim_key="total_30")
    """
    context = {"owner_id": owner_id, **extra} if owner_id else extra
    log_with_context(logger, level, message, **context)
