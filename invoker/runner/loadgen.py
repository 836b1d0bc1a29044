"""Open-loop, fixed-rate load generator.

Requests are issued on a fixed tick grid regardless of how many earlier
requests are still outstanding, so the issue rate never drops to match
service latency.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Union

from opentelemetry.trace import SpanKind

from invoker.errors import ConfigurationError
from invoker.runner.client import BaseClient
from invoker.runner.endpoints import Endpoint, EndpointMode, EndpointSet
from invoker.runner.store import CompletedCounter, LatencyStore
from invoker.tracing import get_tracer

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT_SEC = 30.0
MIN_TICK_INTERVAL_MS = 1


class DrainPolicy(str, Enum):
    """What the driver does with in-flight invocations once the deadline fires.

    RACE returns immediately; late completions still land in the store.
    WAIT awaits every spawned invocation before returning.
    """

    RACE = "race"
    WAIT = "wait"


def tick_interval_ms(target_rps: int) -> int:
    """Dispatch interval in whole milliseconds, floored at 1 ms.

    Truncation over-issues when target_rps does not divide 1000: 300 RPS
    gives a 3 ms interval, i.e. 334 ticks per second instead of 300.
    Above 1000 RPS the 1 ms floor caps the issue rate at 1000 per second.
    """
    return max(1000 // target_rps, MIN_TICK_INTERVAL_MS)


@dataclass
class LoadGenConfig:
    """Configuration for load generation."""

    port: int = 80
    call_timeout_sec: float = DEFAULT_CALL_TIMEOUT_SEC
    drain_policy: DrainPolicy = DrainPolicy.WAIT


@dataclass
class RunResult:
    """Result of a fixed-rate run."""

    target_rps: int
    duration_sec: int
    elapsed_sec: float
    issued: int
    completed_at_deadline: int
    completed: int
    drain_policy: DrainPolicy
    samples: list[int] = field(default_factory=list)
    issued_by_mode: dict[str, int] = field(default_factory=dict)

    @property
    def achieved_rps(self) -> float:
        if self.elapsed_sec <= 0:
            return 0.0
        return self.completed_at_deadline / self.elapsed_sec

    def to_dict(self) -> dict:
        return {
            "target_rps": self.target_rps,
            "achieved_rps": self.achieved_rps,
            "duration_sec": self.duration_sec,
            "elapsed_sec": self.elapsed_sec,
            "issued": self.issued,
            "issued_by_mode": dict(self.issued_by_mode),
            "completed_at_deadline": self.completed_at_deadline,
            "completed": self.completed,
            "drain_policy": self.drain_policy.value,
            "sample_count": len(self.samples),
        }


class InvocationTask:
    """Performs one remote call and records its latency.

    Every invocation appends exactly one sample and bumps the counter once,
    whether the call succeeded, failed or timed out.
    """

    def __init__(
        self,
        client: BaseClient,
        store: LatencyStore,
        counter: CompletedCounter,
        port: int = 80,
        timeout_sec: float = DEFAULT_CALL_TIMEOUT_SEC,
    ):
        self.client = client
        self.store = store
        self.counter = counter
        self.port = port
        self.timeout_sec = timeout_sec

    async def invoke(self, endpoint: Endpoint) -> None:
        address = endpoint.address(self.port)
        logger.debug("Invoking %s endpoint by the address: %s", endpoint.mode.value, address)

        with get_tracer().start_as_current_span(
            "invoke",
            kind=SpanKind.CLIENT,
            attributes={"invoker.address": address, "invoker.mode": endpoint.mode.value},
        ):
            start = time.perf_counter()
            try:
                await asyncio.wait_for(
                    self.client.call(address, self.timeout_sec),
                    timeout=self.timeout_sec,
                )
            except Exception as e:
                # failed attempts are still latency observations
                logger.warning("Failed to invoke %s, err=%r", address, e)
            latency_us = int((time.perf_counter() - start) * 1_000_000)

        self.store.record(latency_us)
        self.counter.increment()
        logger.debug("Invoked %s in %d usec", address, latency_us)


def validate_run(
    endpoints: Union[EndpointSet, Sequence[Endpoint]],
    duration_sec: int,
    target_rps: int,
) -> EndpointSet:
    """Reject configurations the driver cannot run.

    Returns:
        The endpoints as an EndpointSet
    """
    if target_rps < 1:
        raise ConfigurationError(f"target RPS must be >= 1, got {target_rps}")
    if duration_sec < 1:
        raise ConfigurationError(f"duration must be >= 1 second, got {duration_sec}")
    if not isinstance(endpoints, EndpointSet):
        endpoints = EndpointSet(endpoints)
    return endpoints


class LoadGenerator:
    """Fixed-rate driver that owns the latency store and completed counter."""

    def __init__(self, client: BaseClient, config: Optional[LoadGenConfig] = None):
        self.client = client
        self.config = config or LoadGenConfig()
        self.store = LatencyStore()
        self.counter = CompletedCounter()
        self.issued = 0
        self._in_flight: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> frozenset:
        """Invocations spawned by this driver that have not finished yet."""
        return frozenset(self._in_flight)

    def _spawn(self, task: InvocationTask, endpoint: Endpoint) -> None:
        invocation = asyncio.create_task(task.invoke(endpoint))
        self._in_flight.add(invocation)
        invocation.add_done_callback(self._in_flight.discard)

    async def drain(self) -> None:
        """Wait until every spawned invocation has finished."""
        while self._in_flight:
            await asyncio.wait(list(self._in_flight))

    async def cancel_in_flight(self) -> int:
        """Cancel unfinished invocations and wait for them to unwind.

        Cancelled invocations record nothing.

        Returns:
            Number of invocations cancelled
        """
        pending = list(self._in_flight)
        for invocation in pending:
            invocation.cancel()
        if pending:
            await asyncio.wait(pending)
            logger.info("Cancelled %d in-flight invocations", len(pending))
        return len(pending)

    async def run(
        self,
        endpoints: Union[EndpointSet, Sequence[Endpoint]],
        duration_sec: int,
        target_rps: int,
    ) -> RunResult:
        """Issue invocations at target_rps for duration_sec seconds.

        Args:
            endpoints: Non-empty endpoint set, selected round-robin
            duration_sec: Wall-clock budget in seconds
            target_rps: Target requests per second

        Returns:
            Run result with achieved RPS computed from the counter at the deadline
        """
        endpoints = validate_run(endpoints, duration_sec, target_rps)

        self.store = LatencyStore()
        self.counter = CompletedCounter()
        self.issued = 0
        invocation = InvocationTask(
            self.client,
            self.store,
            self.counter,
            port=self.config.port,
            timeout_sec=self.config.call_timeout_sec,
        )

        interval_ms = tick_interval_ms(target_rps)
        budget_ms = duration_sec * 1000
        issued_by_mode = {mode.value: 0 for mode in EndpointMode}

        logger.info(
            "Starting benchmark: %d endpoints, target %d RPS, tick %d ms, %d s",
            len(endpoints), target_rps, interval_ms, duration_sec,
        )

        loop = asyncio.get_running_loop()
        start = loop.time()
        deadline = start + duration_sec

        # tick k fires at start + k * interval; a late wakeup catches up
        while self.issued * interval_ms < budget_ms:
            delay = start + self.issued * interval_ms / 1000 - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            if loop.time() >= deadline:
                break
            endpoint = endpoints.select(self.issued)
            self._spawn(invocation, endpoint)
            issued_by_mode[endpoint.mode.value] += 1
            self.issued += 1

        remaining = deadline - loop.time()
        if remaining > 0:
            await asyncio.sleep(remaining)

        elapsed = loop.time() - start
        completed_at_deadline = self.counter.value

        if self.config.drain_policy is DrainPolicy.WAIT:
            logger.info("Waiting for %d in-flight invocations", len(self._in_flight))
            await self.drain()

        result = RunResult(
            target_rps=target_rps,
            duration_sec=duration_sec,
            elapsed_sec=elapsed,
            issued=self.issued,
            completed_at_deadline=completed_at_deadline,
            completed=self.counter.value,
            drain_policy=self.config.drain_policy,
            samples=self.store.drain(),
            issued_by_mode=issued_by_mode,
        )

        logger.info("Issued / completed requests: %d, %d", result.issued, completed_at_deadline)
        logger.info("Real / target RPS: %.2f / %d", result.achieved_rps, target_rps)
        logger.info("Benchmark finished!")
        return result
