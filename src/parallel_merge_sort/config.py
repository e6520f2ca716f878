"""
Engine configuration.

Priority for every field: explicit argument, then environment variable
(``PARALLEL_SORT_*``), then the module default. Unparseable environment
values fall back to the default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

DEFAULT_UNITS = 4
DEFAULT_THRESHOLD = 1000
DEFAULT_JOIN_TIMEOUT = 5.0

ENV_UNITS = "PARALLEL_SORT_UNITS"
ENV_THRESHOLD = "PARALLEL_SORT_THRESHOLD"
ENV_START_METHOD = "PARALLEL_SORT_START_METHOD"
ENV_JOIN_TIMEOUT = "PARALLEL_SORT_JOIN_TIMEOUT"

T = TypeVar("T", int, float)


def _env_number(name: str, parse: Callable[[str], T], default: T, minimum: T) -> T:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = parse(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


@dataclass(frozen=True)
class SortConfig:
    units: int = DEFAULT_UNITS
    threshold: int = DEFAULT_THRESHOLD
    start_method: Optional[str] = None  # None -> multiprocessing default
    join_timeout: float = DEFAULT_JOIN_TIMEOUT

    def __post_init__(self) -> None:
        if self.units < 1:
            raise ValueError(f"units must be >= 1, got {self.units}")
        if self.threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {self.threshold}")
        if self.join_timeout <= 0:
            raise ValueError(f"join_timeout must be > 0, got {self.join_timeout}")

    @classmethod
    def from_env(cls, **overrides) -> "SortConfig":
        """Build a config from ``PARALLEL_SORT_*`` variables, then apply *overrides*."""
        values = {
            "units": _env_number(ENV_UNITS, int, DEFAULT_UNITS, 1),
            "threshold": _env_number(ENV_THRESHOLD, int, DEFAULT_THRESHOLD, 0),
            "start_method": os.getenv(ENV_START_METHOD) or None,
            "join_timeout": _env_number(ENV_JOIN_TIMEOUT, float, DEFAULT_JOIN_TIMEOUT, 1e-3),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
