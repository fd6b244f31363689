"""Logging and observability configuration using Pydantic Logfire.

This module provides standardized logging utilities and configuration.
All modules should use Python's standard logging library (logging.getLogger(__name__)),
and Logfire will automatically capture and enrich these logs.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_user_context(logger, "warning", "pantry_reload_failed", user_id="42", error="...")
"""

import logging

import logfire

from src.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Standard logging records are forwarded through logfire's handler so that
    service logs end up next to the spans created with span().
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="ecodispensa",
        service_version="0.1.0",
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_pydantic_ai() -> None:
    """Enable automatic tracing for Pydantic AI agent calls."""
    logfire.instrument_pydantic_ai()
    logger = logging.getLogger(__name__)
    logger.info("Pydantic AI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("sync_engine.add_pantry_item"):
            # Your service logic here
            pass
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
        **context: Additional context fields (user_id, item_id, collection, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_user_context(
    logger: logging.Logger,
    level: str,
    message: str,
    user_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with user context.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        user_id: User ID to include in context
        **extra: Additional context fields

    Usage:
        log_with_user_context(logger, "info", "Item added", user_id="123", item_name="Latte")
    """
    context = {"user_id": user_id, **extra} if user_id else extra
    log_with_context(logger, level, message, **context)
