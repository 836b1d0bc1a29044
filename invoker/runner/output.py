"""Persist run results: the latency artifact and a JSON summary."""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from invoker.errors import OutputError
from invoker.metrics.latency import LatencyMetrics
from invoker.metrics.throughput import ThroughputMetrics
from invoker.runner.loadgen import RunResult

logger = logging.getLogger(__name__)


def latency_file_name(rps: float, latency_file: str) -> str:
    return f"rps{rps:.2f}_{latency_file}"


def write_latencies(
    samples_us: Iterable[int],
    rps: float,
    latency_file: str,
    output_dir: Path = Path("."),
) -> Path:
    """Write one latency per line, in microseconds, no header.

    Args:
        samples_us: Latency samples in microseconds
        rps: Achieved RPS, used in the file name
        latency_file: Base file name
        output_dir: Directory to write into

    Returns:
        Path of the written file

    Raises:
        OutputError: if the file cannot be created or written
    """
    path = Path(output_dir) / latency_file_name(rps, latency_file)
    logger.info("The measured latencies are saved in %s", path)
    try:
        with open(path, "w") as f:
            for sample in samples_us:
                f.write(f"{sample}\n")
    except OSError as e:
        raise OutputError(f"Failed writing latencies to {path}: {e}") from e
    return path


def write_summary(
    result: RunResult,
    path: Path,
    latency: Optional[LatencyMetrics] = None,
    throughput: Optional[ThroughputMetrics] = None,
    config_hash: Optional[str] = None,
) -> Path:
    """Save the run summary to a JSON file."""
    summary = result.to_dict()
    if config_hash is not None:
        summary["config_hash"] = config_hash
    if latency is not None:
        summary["latency"] = latency.to_dict()
    if throughput is not None:
        summary["throughput"] = throughput.to_dict()

    try:
        with open(path, "w") as f:
            json.dump(summary, f, indent=2)
    except OSError as e:
        raise OutputError(f"Failed writing summary to {path}: {e}") from e
    logger.info("Saved summary to %s", path)
    return path
