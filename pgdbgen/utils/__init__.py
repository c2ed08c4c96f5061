"""
Utilities package for pgdbgen.

Shared logging helpers. Keep this package free of domain-specific logic.
"""

from pgdbgen.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
]
