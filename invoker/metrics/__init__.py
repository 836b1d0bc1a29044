"""Metrics computation for run results."""

from invoker.metrics.latency import compute_latency_metrics, LatencyMetrics
from invoker.metrics.throughput import compute_throughput_metrics, ThroughputMetrics

__all__ = [
    "compute_latency_metrics",
    "LatencyMetrics",
    "compute_throughput_metrics",
    "ThroughputMetrics",
]
