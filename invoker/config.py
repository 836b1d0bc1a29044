"""Run configuration.

Values come from an optional YAML file and are overridden by command-line
flags. The configuration is frozen once the run starts.
"""

import hashlib
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from invoker.errors import ConfigurationError
from invoker.runner.loadgen import (
    DEFAULT_CALL_TIMEOUT_SEC,
    DrainPolicy,
    LoadGenConfig,
    tick_interval_ms,
)
from invoker.tracing import DEFAULT_ZIPKIN_URL

TRANSPORTS = ("grpc", "http", "mock")

# bool is a subclass of int, so integer fields reject it explicitly
INT_FIELDS = ("target_rps", "duration_sec", "port")
NUMBER_FIELDS = ("call_timeout_sec",)
BOOL_FIELDS = ("tracing", "debug")
STR_FIELDS = (
    "urls_file",
    "latency_file",
    "output_dir",
    "zipkin_url",
    "transport",
    "drain_policy",
)


@dataclass(frozen=True)
class RunConfig:
    """Configuration for a single invoker run."""

    target_rps: int = 1
    duration_sec: int = 5
    urls_file: str = "urls.txt"
    latency_file: str = "lat.csv"
    output_dir: str = "."
    port: int = 80
    tracing: bool = False
    zipkin_url: str = DEFAULT_ZIPKIN_URL
    transport: str = "grpc"
    call_timeout_sec: float = DEFAULT_CALL_TIMEOUT_SEC
    drain_policy: str = DrainPolicy.WAIT.value
    debug: bool = False

    @classmethod
    def known_fields(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_yaml(cls, path: Path) -> "RunConfig":
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: on unreadable files, invalid YAML or unknown keys
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must contain a mapping")

        unknown = sorted(str(k) for k in data if k not in cls.known_fields())
        if unknown:
            raise ConfigurationError(
                f"unknown keys in config file {path}: {', '.join(unknown)}"
            )

        return cls(**data)

    def with_overrides(self, **overrides: Any) -> "RunConfig":
        """Copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def _check_types(self) -> None:
        for name in INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in NUMBER_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")
        for name in BOOL_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{name} must be true or false, got {value!r}")
        for name in STR_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigurationError(f"{name} must be a string, got {value!r}")

    def validate(self) -> "RunConfig":
        self._check_types()
        if self.target_rps < 1:
            raise ConfigurationError(f"rps must be >= 1, got {self.target_rps}")
        if self.duration_sec < 1:
            raise ConfigurationError(f"time must be >= 1 second, got {self.duration_sec}")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port out of range: {self.port}")
        if self.call_timeout_sec <= 0:
            raise ConfigurationError(f"call timeout must be positive, got {self.call_timeout_sec}")
        if self.transport not in TRANSPORTS:
            raise ConfigurationError(
                f"unknown transport {self.transport!r}, expected one of {', '.join(TRANSPORTS)}"
            )
        if self.drain_policy not in {p.value for p in DrainPolicy}:
            raise ConfigurationError(f"unknown drain policy {self.drain_policy!r}")
        return self

    def tick_interval_ms(self) -> int:
        return tick_interval_ms(self.target_rps)

    def loadgen_config(self) -> LoadGenConfig:
        return LoadGenConfig(
            port=self.port,
            call_timeout_sec=self.call_timeout_sec,
            drain_policy=DrainPolicy(self.drain_policy),
        )

    def config_hash(self) -> str:
        """Generate a hash of the configuration for reproducibility."""
        # Sort keys for deterministic hashing
        config_str = yaml.dump(asdict(self), sort_keys=True)
        return hashlib.sha256(config_str.encode()).hexdigest()[:16]
