"""Timing helpers for parser runs and registry calls."""

import functools
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, TypeVar

from .logging import get_logger

F = TypeVar('F', bound=Callable[..., Any])


@dataclass
class OperationTiming:
    """Aggregate timing of one named operation."""

    name: str
    calls: int = 0
    total_time: float = 0.0

    @property
    def average_time(self) -> float:
        return self.total_time / self.calls if self.calls else 0.0


class PerformanceMonitor:
    """Collects per-operation call counts and wall time.

    The registry client keeps one per instance so a digest search can report
    how many tag listings and manifest lookups it took.
    """

    def __init__(self) -> None:
        self.timings: Dict[str, OperationTiming] = {}

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        """Time the enclosed block under ``name``.

        Args:
            name: Operation name, e.g. ``tags`` or ``digest``

        Yields:
            None
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            timing = self.timings.setdefault(name, OperationTiming(name))
            timing.calls += 1
            timing.total_time += time.perf_counter() - start_time

    def get_summary(self) -> Dict[str, Any]:
        """Summarize what has been measured.

        Returns:
            Total call count, total time and the per-operation timings
        """
        return {
            "total_calls": sum(t.calls for t in self.timings.values()),
            "total_time": sum(t.total_time for t in self.timings.values()),
            "operations": dict(self.timings),
        }

    def describe(self) -> str:
        """One-line description for debug logs."""
        return ", ".join(
            f"{t.name}: {t.calls} call(s) in {t.total_time:.3f}s"
            for t in self.timings.values()
        ) or "no calls"


def benchmark(func: F) -> F:
    """Log the wall time of each call at debug level.

    Args:
        func: Function to benchmark

    Returns:
        Wrapped function with timing
    """
    logger = get_logger("Performance")

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.debug(f"{func.__qualname__} took {time.perf_counter() - start_time:.4f} seconds")
    return wrapper  # type: ignore[return-value]
