"""Fixed-rate RPC invoker for latency-under-load measurement."""

__version__ = "0.1.0"
