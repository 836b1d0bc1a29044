#!/usr/bin/env python3
"""Run a fixed-rate invocation benchmark against the endpoints in a URL file."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from invoker.config import TRANSPORTS, RunConfig
from invoker.errors import ConfigurationError, OutputError
from invoker.logging_setup import setup_logging
from invoker.metrics import compute_latency_metrics, compute_throughput_metrics
from invoker.runner.client import create_client
from invoker.runner.endpoints import EndpointSet, read_endpoints
from invoker.runner.loadgen import DrainPolicy, LoadGenerator, RunResult
from invoker.runner.output import write_latencies, write_summary
from invoker.tracing import init_tracer

logger = logging.getLogger("invoker")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Defaults are None so that only flags given explicitly override YAML values.
    """
    parser = argparse.ArgumentParser(description="Fixed-rate RPC invoker")
    parser.add_argument("--config", type=Path, help="YAML run configuration")
    parser.add_argument("--urls-file", dest="urls_file", help="File with functions' URLs")
    parser.add_argument("--rps", dest="target_rps", type=int, help="Target requests per second")
    parser.add_argument("--time", dest="duration_sec", type=int,
                        help="Run the benchmark for X seconds")
    parser.add_argument("--latf", dest="latency_file",
                        help="CSV file for the latency measurements in microseconds")
    parser.add_argument("--output-dir", dest="output_dir", help="Directory for output files")
    parser.add_argument("--port", type=int, help="The port that functions listen to")
    parser.add_argument("--trace", dest="tracing", action="store_true", default=None,
                        help="Enable tracing in the client")
    parser.add_argument("--zipkin", dest="zipkin_url", help="Zipkin spans URL")
    parser.add_argument("--transport", choices=TRANSPORTS)
    parser.add_argument("--timeout", dest="call_timeout_sec", type=float,
                        help="Per-call timeout in seconds")
    parser.add_argument("--drain", dest="drain_policy", choices=[p.value for p in DrainPolicy],
                        help="Wait for in-flight calls at the deadline, or race them")
    parser.add_argument("--dbg", dest="debug", action="store_true", default=None,
                        help="Enable debug logging")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> RunConfig:
    base = RunConfig.from_yaml(args.config) if args.config else RunConfig()
    overrides = {k: v for k, v in vars(args).items() if k != "config"}
    return base.with_overrides(**overrides).validate()


async def run_benchmark(config: RunConfig, endpoints: EndpointSet) -> RunResult:
    """Run one benchmark with the configured transport."""
    client = create_client(config.transport, tracing=config.tracing)
    generator = LoadGenerator(client, config.loadgen_config())
    try:
        return await generator.run(endpoints, config.duration_sec, config.target_rps)
    finally:
        # the result is already sampled; late calls must not hit a closed client
        await generator.cancel_in_flight()
        await client.close()


def print_results(result: RunResult) -> None:
    throughput = compute_throughput_metrics(
        result.issued, result.completed_at_deadline, result.elapsed_sec, result.target_rps
    )
    print(f"\n=== Results ===")
    print(f"Issued requests: {result.issued}")
    print(f"Completed at deadline: {result.completed_at_deadline}")
    print(f"Completed after drain: {result.completed}")
    print(f"Duration: {result.elapsed_sec:.2f}s")
    print(f"Real / target RPS: {throughput.achieved_rps:.2f} / {result.target_rps}")

    if result.samples:
        latency = compute_latency_metrics(result.samples)
        print(f"\nLatency (usec):")
        print(f"  p50: {latency.p50_us:.0f}")
        print(f"  p95: {latency.p95_us:.0f}")
        print(f"  p99: {latency.p99_us:.0f}")
        print(f"  Max: {latency.max_us:.0f}")


def save_results(result: RunResult, config: RunConfig) -> Path:
    output_dir = Path(config.output_dir)
    latency_path = write_latencies(
        result.samples, result.achieved_rps, config.latency_file, output_dir
    )
    latency = compute_latency_metrics(result.samples) if result.samples else None
    throughput = compute_throughput_metrics(
        result.issued, result.completed_at_deadline, result.elapsed_sec, result.target_rps
    )
    write_summary(
        result,
        latency_path.with_suffix(".summary.json"),
        latency=latency,
        throughput=throughput,
        config_hash=config.config_hash(),
    )
    return latency_path


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config.debug)
    logger.info("Reading the URLs from the file: %s", config.urls_file)

    try:
        endpoints = read_endpoints(Path(config.urls_file))
    except ConfigurationError as e:
        logger.error("Failed to read the URL files: %s", e)
        return 1

    shutdown = init_tracer(config.zipkin_url) if config.tracing else None
    try:
        result = asyncio.run(run_benchmark(config, endpoints))
    finally:
        if shutdown is not None:
            shutdown()

    print_results(result)

    try:
        save_results(result, config)
    except OutputError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
