"""Execution-time measurement for repeated round trips."""

import statistics
import time
from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class MeasurementResult:
    """Per-trial execution times in nanoseconds."""

    durations: list[int] = field(default_factory=list)

    def min(self) -> int:
        return min(self.durations)

    def max(self) -> int:
        return max(self.durations)

    def median(self) -> int:
        """Upper median (element n // 2 of the sorted samples)."""
        return statistics.median_high(self.durations)

    def mean(self) -> float:
        return statistics.fmean(self.durations)

    def sd(self) -> float:
        """Population standard deviation."""
        return statistics.pstdev(self.durations)

    def summary(self) -> dict:
        return {
            "trials": len(self.durations),
            "min_ns": self.min(),
            "max_ns": self.max(),
            "median_ns": self.median(),
            "mean_ns": self.mean(),
            "sd_ns": self.sd(),
        }


def measure_execution_time(
    trials: int,
    delay: float,
    func: Callable[..., Any],
    *args: Any,
) -> MeasurementResult:
    """
    Call func(*args) repeatedly and record how long each call takes.

    Args:
        trials: Number of invocations
        delay: Seconds to sleep after each invocation
        func: Callable to measure
        *args: Arguments passed to func

    Returns:
        MeasurementResult with one duration per trial
    """
    if trials < 1:
        raise ValueError(f"trials must be >= 1, got {trials}")

    result = MeasurementResult()
    for _ in range(trials):
        start = time.perf_counter_ns()
        func(*args)
        result.durations.append(time.perf_counter_ns() - start)
        time.sleep(delay)
    return result
