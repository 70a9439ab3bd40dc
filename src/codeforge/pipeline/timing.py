"""Elapsed-time measurement and formatting."""

import time


class Stopwatch:
    """Monotonic nanosecond timer, usable as a context manager."""

    def __init__(self):
        self.start_ns = time.perf_counter_ns()
        self.elapsed_ns = 0

    def stop(self) -> int:
        self.elapsed_ns = time.perf_counter_ns() - self.start_ns
        return self.elapsed_ns

    def __enter__(self) -> "Stopwatch":
        self.start_ns = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def format_processing_time(elapsed_ms: float) -> str:
    """Format a duration as ``12.34s`` under a minute, ``3m 5s`` otherwise."""
    total_seconds = elapsed_ms / 1000
    if total_seconds < 60:
        return f"{total_seconds:.2f}s"

    # Round half up before splitting so 119.6s reads 2m 0s, never 1m 60s.
    minutes, seconds = divmod(int(total_seconds + 0.5), 60)
    return f"{minutes}m {seconds}s"


def format_ns(elapsed_ns: int) -> str:
    return format_processing_time(elapsed_ns / 1_000_000)
