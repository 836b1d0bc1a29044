"""Benchmark runner components."""

from invoker.runner.client import GrpcClient, HttpClient, MockClient
from invoker.runner.endpoints import Endpoint, EndpointMode, EndpointSet, read_endpoints
from invoker.runner.loadgen import DrainPolicy, LoadGenConfig, LoadGenerator

__all__ = [
    "GrpcClient",
    "HttpClient",
    "MockClient",
    "Endpoint",
    "EndpointMode",
    "EndpointSet",
    "read_endpoints",
    "DrainPolicy",
    "LoadGenConfig",
    "LoadGenerator",
]
