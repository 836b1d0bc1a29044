"""Transport clients used by invocation tasks.

Every client exposes a single coroutine, ``call(address, timeout)``, that
returns on success and raises on any failure. Timing is done by the caller.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import grpc
import httpx
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from invoker.tracing import grpc_client_interceptors

GREETER_METHOD = "/helloworld.Greeter/SayHello"
DEFAULT_GREETING_NAME = "faas"


def _build_helloworld_messages():
    """Build HelloRequest/HelloReply classes from an in-memory descriptor."""
    field = descriptor_pb2.FieldDescriptorProto
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="invoker/helloworld.proto",
        package="helloworld",
        syntax="proto3",
    )
    request = file_proto.message_type.add(name="HelloRequest")
    request.field.add(
        name="name", number=1, type=field.TYPE_STRING, label=field.LABEL_OPTIONAL
    )
    reply = file_proto.message_type.add(name="HelloReply")
    reply.field.add(
        name="message", number=1, type=field.TYPE_STRING, label=field.LABEL_OPTIONAL
    )

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    return (
        message_factory.GetMessageClass(pool.FindMessageTypeByName("helloworld.HelloRequest")),
        message_factory.GetMessageClass(pool.FindMessageTypeByName("helloworld.HelloReply")),
    )


HelloRequest, HelloReply = _build_helloworld_messages()


class BaseClient(ABC):
    """Abstract base class for transport clients."""

    @abstractmethod
    async def call(self, address: str, timeout: float) -> None:
        """Perform one request/response against address; raise on failure."""
        pass

    async def close(self) -> None:
        pass


class GrpcClient(BaseClient):
    """Unary helloworld Greeter client, one channel per call."""

    def __init__(
        self,
        name: str = DEFAULT_GREETING_NAME,
        interceptors: Optional[Sequence[grpc.aio.ClientInterceptor]] = None,
    ):
        self.name = name
        self.interceptors = list(interceptors) if interceptors else None

    async def call(self, address: str, timeout: float) -> None:
        async with grpc.aio.insecure_channel(
            address, interceptors=self.interceptors
        ) as channel:
            say_hello = channel.unary_unary(
                GREETER_METHOD,
                request_serializer=HelloRequest.SerializeToString,
                response_deserializer=HelloReply.FromString,
            )
            # wait_for_ready blocks on connection setup instead of failing fast
            await say_hello(
                HelloRequest(name=self.name), timeout=timeout, wait_for_ready=True
            )


class HttpClient(BaseClient):
    """Plain HTTP GET client for endpoints served over HTTP."""

    def __init__(
        self,
        scheme: str = "http",
        path: str = "/",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.scheme = scheme
        self.path = path
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def call(self, address: str, timeout: float) -> None:
        client = await self._get_client()
        response = await client.get(
            f"{self.scheme}://{address}{self.path}",
            timeout=httpx.Timeout(timeout),
        )
        response.raise_for_status()


class MockClient(BaseClient):
    """Mock client for testing without a live endpoint."""

    def __init__(
        self,
        base_latency_ms: float = 1.0,
        jitter_pct: float = 0.1,
        failure_rate: float = 0.0,
        seed: int = 42,
    ):
        self.base_latency_ms = base_latency_ms
        self.jitter_pct = jitter_pct
        self.failure_rate = failure_rate
        self._rng = random.Random(seed)
        self.calls: list[str] = []

    def _jitter(self, value: float) -> float:
        """Add random jitter to a value."""
        jitter = self._rng.uniform(-self.jitter_pct, self.jitter_pct)
        return value * (1 + jitter)

    async def call(self, address: str, timeout: float) -> None:
        self.calls.append(address)
        fail = self._rng.random() < self.failure_rate
        await asyncio.sleep(self._jitter(self.base_latency_ms) / 1000)
        if fail:
            raise ConnectionError(f"mock failure calling {address}")


def create_client(transport: str, tracing: bool = False) -> BaseClient:
    """Build the client for a configured transport name."""
    if transport == "grpc":
        interceptors = grpc_client_interceptors() if tracing else None
        return GrpcClient(interceptors=interceptors)
    if transport == "http":
        return HttpClient()
    if transport == "mock":
        return MockClient()
    raise ValueError(f"Unknown transport: {transport}")
