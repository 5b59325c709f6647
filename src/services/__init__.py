"""
Services Module - cross-cutting services for the quote pricing portal.

- Logging and observability (logging_config)
"""

from .logging_config import (
    QuoteCalculationLogger,
    configure_logging,
    get_logger,
    log_performance,
)

__all__ = [
    "QuoteCalculationLogger",
    "configure_logging",
    "get_logger",
    "log_performance",
]
