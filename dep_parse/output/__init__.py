"""Output formatters for dep-parse."""

from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "ConsoleFormatter",
    "JSONFormatter",
] 