"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across export and import operations.

Usage:
    from barpack.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="export_bar",
        outcome="success",
        bar_id=1,
        record_count=12,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'barpack.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'barpack.services.recipe_export_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"barpack.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "export_bar", "load_recipes")
        outcome: Outcome description (e.g., "success", "image_missing", "error")
        level: Log level (default: INFO)
        **context: Additional context fields (bar_id, entry path, error details, etc.)

    Example:
        >>> log_operation(
        ...     logger,
        ...     operation="load_recipes",
        ...     outcome="entry_skipped",
        ...     level=logging.WARNING,
        ...     entry="cocktails/negroni-3/recipe.json",
        ... )
        # Logs at WARNING level with the entry path as context
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
