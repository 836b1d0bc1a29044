"""Tests for latency artifact and summary writing."""

import json
from pathlib import Path

import pytest

from invoker.errors import OutputError
from invoker.metrics import compute_latency_metrics
from invoker.runner.loadgen import DrainPolicy, RunResult
from invoker.runner.output import latency_file_name, write_latencies, write_summary


def make_result() -> RunResult:
    return RunResult(
        target_rps=10,
        duration_sec=2,
        elapsed_sec=2.0,
        issued=20,
        completed_at_deadline=20,
        completed=20,
        drain_policy=DrainPolicy.WAIT,
        samples=[400 + i for i in range(20)],
        issued_by_mode={"serving": 20, "eventing": 0},
    )


class TestLatencyFile:
    """Tests for the latency file."""

    def test_file_name(self) -> None:
        assert latency_file_name(10.0, "lat.csv") == "rps10.00_lat.csv"
        assert latency_file_name(9.87654, "out.csv") == "rps9.88_out.csv"

    def test_one_integer_per_line(self, tmp_path: Path) -> None:
        path = write_latencies([812, 97, 30000123], 10.0, "lat.csv", tmp_path)

        assert path == tmp_path / "rps10.00_lat.csv"
        assert path.read_text() == "812\n97\n30000123\n"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        write_latencies([1, 2, 3, 4], 1.0, "lat.csv", tmp_path)
        path = write_latencies([5], 1.0, "lat.csv", tmp_path)
        assert path.read_text() == "5\n"

    def test_unwritable_directory_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OutputError, match="Failed writing latencies"):
            write_latencies([1], 1.0, "lat.csv", tmp_path / "missing")


class TestSummary:
    """Tests for the JSON summary."""

    def test_summary_schema(self, tmp_path: Path) -> None:
        result = make_result()
        path = write_summary(
            result,
            tmp_path / "summary.json",
            latency=compute_latency_metrics(result.samples),
        )

        with open(path) as f:
            summary = json.load(f)

        assert summary["issued"] == 20
        assert summary["achieved_rps"] == 10.0
        assert summary["latency"]["sample_count"] == 20
        assert "throughput" not in summary
