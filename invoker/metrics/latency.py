"""Latency metrics computation."""

from dataclasses import dataclass
from typing import Sequence
import statistics


@dataclass
class LatencyMetrics:
    """Computed latency metrics, all in microseconds."""

    mean_us: float
    p50_us: float
    p95_us: float
    p99_us: float
    min_us: float
    max_us: float
    stddev_us: float

    sample_count: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "mean_us": self.mean_us,
            "p50_us": self.p50_us,
            "p95_us": self.p95_us,
            "p99_us": self.p99_us,
            "min_us": self.min_us,
            "max_us": self.max_us,
            "stddev_us": self.stddev_us,
            "sample_count": self.sample_count,
        }


def percentile(data: Sequence[float], p: float) -> float:
    """Compute percentile of a sorted sequence.

    Args:
        data: Sorted sequence of values
        p: Percentile (0-100)

    Returns:
        Value at the given percentile
    """
    if not data:
        return 0.0
    k = (len(data) - 1) * (p / 100)
    f = int(k)
    c = f + 1 if f + 1 < len(data) else f
    return data[f] + (k - f) * (data[c] - data[f])


def compute_stats(values: Sequence[float]) -> dict:
    """Compute summary statistics for a sequence of values.

    Args:
        values: Sequence of numeric values

    Returns:
        Dictionary with mean, p50, p95, p99, min, max, stddev
    """
    if not values:
        return {
            "mean": 0.0,
            "p50": 0.0,
            "p95": 0.0,
            "p99": 0.0,
            "min": 0.0,
            "max": 0.0,
            "stddev": 0.0,
        }

    sorted_values = sorted(values)
    return {
        "mean": statistics.mean(values),
        "p50": percentile(sorted_values, 50),
        "p95": percentile(sorted_values, 95),
        "p99": percentile(sorted_values, 99),
        "min": min(values),
        "max": max(values),
        "stddev": statistics.stdev(values) if len(values) > 1 else 0.0,
    }


def compute_latency_metrics(samples_us: Sequence[int]) -> LatencyMetrics:
    """Compute latency metrics from microsecond samples.

    Failed calls are included; their elapsed time is a valid observation.

    Args:
        samples_us: Latency samples in microseconds

    Returns:
        Computed latency metrics
    """
    if not samples_us:
        raise ValueError("No samples provided")

    stats = compute_stats([float(s) for s in samples_us])
    return LatencyMetrics(
        mean_us=stats["mean"],
        p50_us=stats["p50"],
        p95_us=stats["p95"],
        p99_us=stats["p99"],
        min_us=stats["min"],
        max_us=stats["max"],
        stddev_us=stats["stddev"],
        sample_count=len(samples_us),
    )
