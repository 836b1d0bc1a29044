"""Endpoint set loaded from a tab-separated URL file."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Sequence

from invoker.errors import ConfigurationError

EVENTING_TAG = "eventing"


class EndpointMode(str, Enum):
    """How an endpoint's latency is attributed."""

    SERVING = "serving"
    EVENTING = "eventing"


@dataclass(frozen=True)
class Endpoint:
    """A single call target."""

    url: str
    mode: EndpointMode = EndpointMode.SERVING

    @property
    def eventing(self) -> bool:
        return self.mode is EndpointMode.EVENTING

    def address(self, port: int) -> str:
        return f"{self.url}:{port}"


class EndpointSet:
    """Ordered, non-empty, immutable collection of endpoints."""

    def __init__(self, endpoints: Sequence[Endpoint]):
        if not endpoints:
            raise ConfigurationError("endpoint set is empty")
        self._endpoints = tuple(endpoints)

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[Endpoint]:
        return iter(self._endpoints)

    def __getitem__(self, index: int) -> Endpoint:
        return self._endpoints[index]

    def select(self, issued: int) -> Endpoint:
        """Round-robin pick for the given issue count."""
        return self._endpoints[issued % len(self._endpoints)]


def parse_endpoint_line(line: str, lineno: int = 0) -> Endpoint:
    """Parse `<url>` or `<url>\\teventing`.

    Raises:
        ConfigurationError: on more than two fields or an unknown tag
    """
    tokens = line.rstrip("\r\n").split("\t")
    if len(tokens) == 1 and tokens[0]:
        return Endpoint(url=tokens[0], mode=EndpointMode.SERVING)
    if len(tokens) == 2 and tokens[0] and tokens[1] == EVENTING_TAG:
        return Endpoint(url=tokens[0], mode=EndpointMode.EVENTING)
    raise ConfigurationError(f"malformed urls file, line {lineno}: {tokens!r}")


def read_endpoints(path: Path) -> EndpointSet:
    """Load endpoints from a URL file, one per line.

    Blank lines are ignored. Any malformed line aborts the whole load.

    Args:
        path: Path to the URL file

    Returns:
        Non-empty endpoint set
    """
    endpoints = []
    try:
        with open(path) as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                endpoints.append(parse_endpoint_line(line, lineno))
    except OSError as e:
        raise ConfigurationError(f"cannot read urls file {path}: {e}") from e

    if not endpoints:
        raise ConfigurationError(f"no endpoints in urls file {path}")
    return EndpointSet(endpoints)
