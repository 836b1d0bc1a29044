"""Tests for run configuration parsing."""

import tempfile
from pathlib import Path

import pytest
import yaml

from invoker.config import RunConfig
from invoker.errors import ConfigurationError
from invoker.runner.loadgen import DrainPolicy


def write_yaml(data) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(data, f)
        return Path(f.name)


class TestRunConfigParsing:
    """Tests for RunConfig YAML parsing."""

    def test_defaults(self) -> None:
        config = RunConfig()
        assert config.target_rps == 1
        assert config.duration_sec == 5
        assert config.latency_file == "lat.csv"
        assert config.urls_file == "urls.txt"
        assert config.port == 80
        assert config.tracing is False
        assert config.call_timeout_sec == 30.0
        assert config.drain_policy == "wait"

    def test_parse_full_config(self) -> None:
        config_path = write_yaml({
            "target_rps": 50,
            "duration_sec": 10,
            "urls_file": "endpoints.txt",
            "port": 50051,
            "tracing": True,
            "transport": "http",
            "drain_policy": "race",
        })
        try:
            config = RunConfig.from_yaml(config_path)
            assert config.target_rps == 50
            assert config.duration_sec == 10
            assert config.urls_file == "endpoints.txt"
            assert config.port == 50051
            assert config.tracing is True
            assert config.transport == "http"
        finally:
            config_path.unlink()

    def test_empty_yaml_uses_defaults(self) -> None:
        config_path = write_yaml(None)
        try:
            assert RunConfig.from_yaml(config_path).target_rps == 1
        finally:
            config_path.unlink()

    def test_non_mapping_rejected(self) -> None:
        config_path = write_yaml([1, 2, 3])
        try:
            with pytest.raises(ConfigurationError, match="mapping"):
                RunConfig.from_yaml(config_path)
        finally:
            config_path.unlink()

    def test_unknown_key_rejected(self) -> None:
        """A misspelled key must not silently fall back to the default."""
        config_path = write_yaml({"rps": 100, "port": 8080})
        try:
            with pytest.raises(ConfigurationError, match="unknown keys.*rps"):
                RunConfig.from_yaml(config_path)
        finally:
            config_path.unlink()

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"target_rps": "fast"}, "target_rps must be an integer"),
            ({"duration_sec": 2.5}, "duration_sec must be an integer"),
            ({"port": True}, "port must be an integer"),
            ({"call_timeout_sec": "slow"}, "call_timeout_sec must be a number"),
            ({"call_timeout_sec": False}, "call_timeout_sec must be a number"),
            ({"tracing": "yes"}, "tracing must be true or false"),
            ({"debug": 1}, "debug must be true or false"),
            ({"urls_file": 42}, "urls_file must be a string"),
        ],
    )
    def test_wrong_types_rejected(self, data, message) -> None:
        config_path = write_yaml(data)
        try:
            config = RunConfig.from_yaml(config_path)
            with pytest.raises(ConfigurationError, match=message):
                config.validate()
        finally:
            config_path.unlink()

    def test_integer_timeout_accepted(self) -> None:
        config_path = write_yaml({"call_timeout_sec": 10})
        try:
            assert RunConfig.from_yaml(config_path).validate().call_timeout_sec == 10
        finally:
            config_path.unlink()

    def test_config_hash_deterministic(self) -> None:
        assert RunConfig(target_rps=3).config_hash() == RunConfig(target_rps=3).config_hash()
        assert RunConfig(target_rps=3).config_hash() != RunConfig(target_rps=4).config_hash()


class TestRunConfigOverrides:
    """Tests for flag overrides and validation."""

    def test_none_overrides_ignored(self) -> None:
        config = RunConfig(target_rps=20).with_overrides(target_rps=None, port=8080)
        assert config.target_rps == 20
        assert config.port == 8080

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"target_rps": 0}, "rps"),
            ({"duration_sec": 0}, "time"),
            ({"port": 0}, "port"),
            ({"call_timeout_sec": 0}, "timeout"),
            ({"transport": "smtp"}, "transport"),
            ({"drain_policy": "never"}, "drain"),
        ],
    )
    def test_invalid_values_rejected(self, overrides, message) -> None:
        with pytest.raises(ConfigurationError, match=message):
            RunConfig(**overrides).validate()

    def test_tick_interval(self) -> None:
        assert RunConfig(target_rps=10).tick_interval_ms() == 100
        assert RunConfig(target_rps=2000).tick_interval_ms() == 1

    def test_loadgen_config(self) -> None:
        loadgen = RunConfig(port=9000, drain_policy="race").loadgen_config()
        assert loadgen.port == 9000
        assert loadgen.drain_policy is DrainPolicy.RACE
        assert loadgen.call_timeout_sec == 30.0
