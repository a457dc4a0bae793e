"""Driver tunables resolved from the environment.

Values outside their sane range are clamped and reported once through the
structured logger; non-integers fall back to the default.
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Dict, Tuple
from .logging_util import warn

DEFAULT_ROW_LIMIT = 1000
DEFAULT_PAGE_SIZE = 100
DEFAULT_MONGO_SAMPLE_SIZE = 100
DEFAULT_MONGO_PROBE_TIMEOUT_MS = 5_000
DEFAULT_MONGO_CONNECT_TIMEOUT_MS = 10_000
DEFAULT_MONGO_QUERY_TIMEOUT_MS = 30_000

# env key -> (field, default, min, max)
_LIMITS: Dict[str, Tuple[str, int, int, int]] = {
    "SQ_ROW_LIMIT": ("row_limit", DEFAULT_ROW_LIMIT, 1, 100_000),
    "SQ_PAGE_SIZE": ("page_size", DEFAULT_PAGE_SIZE, 1, 10_000),
    "SQ_MONGO_SAMPLE_SIZE": ("mongo_sample_size", DEFAULT_MONGO_SAMPLE_SIZE, 1, 10_000),
    "SQ_MONGO_PROBE_TIMEOUT_MS": ("mongo_probe_timeout_ms", DEFAULT_MONGO_PROBE_TIMEOUT_MS, 100, 600_000),
    "SQ_MONGO_CONNECT_TIMEOUT_MS": ("mongo_connect_timeout_ms", DEFAULT_MONGO_CONNECT_TIMEOUT_MS, 100, 600_000),
    "SQ_MONGO_QUERY_TIMEOUT_MS": ("mongo_query_timeout_ms", DEFAULT_MONGO_QUERY_TIMEOUT_MS, 100, 600_000),
}

@dataclass
class DriverConfig:
    row_limit: int = DEFAULT_ROW_LIMIT
    page_size: int = DEFAULT_PAGE_SIZE
    mongo_sample_size: int = DEFAULT_MONGO_SAMPLE_SIZE
    mongo_probe_timeout_ms: int = DEFAULT_MONGO_PROBE_TIMEOUT_MS
    mongo_connect_timeout_ms: int = DEFAULT_MONGO_CONNECT_TIMEOUT_MS
    mongo_query_timeout_ms: int = DEFAULT_MONGO_QUERY_TIMEOUT_MS

    @classmethod
    def from_env(cls) -> "DriverConfig":
        def _int(name: str, default: int) -> int:
            raw = os.environ.get(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                warn("invalid_env_int", key=name, value=raw, default=default)
                return default
        values = {}
        adjusted = {}
        for key, (attr, default, lo, hi) in _LIMITS.items():
            val = _int(key, default)
            if val < lo or val > hi:
                adjusted[attr] = val
                val = min(hi, max(lo, val))
            values[attr] = val
        if adjusted:
            warn("driver_config_clamped", original=adjusted,
                 clamped={k: values[k] for k in adjusted})
        return cls(**values)

    def seconds(self, attr: str) -> float:
        """Millisecond tunable as seconds, for APIs that take float seconds."""
        return getattr(self, attr) / 1000.0
