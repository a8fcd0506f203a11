"""Utility functions and helpers for dep-parse."""

from .logging import setup_logging, get_logger
from .performance import PerformanceMonitor, benchmark

__all__ = [
    "setup_logging",
    "get_logger",
    "PerformanceMonitor",
    "benchmark",
]
