"""Error types raised outside of individual invocations."""


class ConfigurationError(ValueError):
    """Invalid run configuration or endpoint source; raised before dispatch."""


class OutputError(OSError):
    """The latency artifact could not be persisted."""
