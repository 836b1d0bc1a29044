"""Throughput metrics computation."""

from dataclasses import dataclass


@dataclass
class ThroughputMetrics:
    """Computed throughput metrics."""

    # Requests per second
    target_rps: float
    issued_rps: float
    achieved_rps: float

    # Totals
    issued_requests: int
    completed_requests: int

    # Duration
    duration_sec: float

    @property
    def achieved_ratio(self) -> float:
        """Achieved RPS as a fraction of the target."""
        if self.target_rps <= 0:
            return 0.0
        return self.achieved_rps / self.target_rps

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "requests_per_sec": {
                "target": self.target_rps,
                "issued": self.issued_rps,
                "achieved": self.achieved_rps,
            },
            "totals": {
                "issued": self.issued_requests,
                "completed": self.completed_requests,
            },
            "duration_sec": self.duration_sec,
        }


def compute_throughput_metrics(
    issued: int,
    completed: int,
    duration_sec: float,
    target_rps: float = 0.0,
) -> ThroughputMetrics:
    """Compute throughput metrics from run counters.

    Args:
        issued: Number of dispatched invocations
        completed: Number of finished invocations (success or failure)
        duration_sec: Elapsed run time in seconds
        target_rps: Configured rate, for comparison

    Returns:
        Computed throughput metrics
    """
    if duration_sec <= 0:
        raise ValueError("Duration must be positive")

    if completed > issued:
        raise ValueError("Completed count cannot exceed issued count")

    return ThroughputMetrics(
        target_rps=float(target_rps),
        issued_rps=issued / duration_sec,
        achieved_rps=completed / duration_sec,
        issued_requests=issued,
        completed_requests=completed,
        duration_sec=duration_sec,
    )
