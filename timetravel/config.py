"""
Timeline Configuration

One dataclass for the whole service, with environment overrides.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Tuple
import os

from .temporal.scheduler import validate_speed


ENV_PREFIX = "TTD_"


@dataclass
class TimelineConfig:
    """Configuration for TimelineService and its observers."""
    route_poll_interval_ms: float = 250.0
    storage_poll_interval_ms: float = 1000.0
    cache_poll_interval_ms: float = 2000.0
    default_speed: float = 1.0
    speed_presets: Tuple[float, ...] = (0.5, 1.0, 2.0, 5.0)
    host_tick_ms: float = 50.0
    export_dir: str = field(default_factory=lambda: os.path.join(os.getcwd(), "timelines"))
    log_level: str = "INFO"
    audit_max_entries: Optional[int] = 10_000

    def __post_init__(self):
        for name in ("route_poll_interval_ms", "storage_poll_interval_ms",
                     "cache_poll_interval_ms", "host_tick_ms"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.audit_max_entries is not None and self.audit_max_entries <= 0:
            raise ValueError("audit_max_entries must be positive")
        self.default_speed = validate_speed(self.default_speed)
        self.speed_presets = tuple(validate_speed(s) for s in self.speed_presets)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'TimelineConfig':
        """Defaults overridden by TTD_* environment variables."""
        env = os.environ if environ is None else environ
        config = cls()
        overrides = {}

        numeric = {
            "ROUTE_POLL_MS": "route_poll_interval_ms",
            "STORAGE_POLL_MS": "storage_poll_interval_ms",
            "CACHE_POLL_MS": "cache_poll_interval_ms",
            "DEFAULT_SPEED": "default_speed",
            "HOST_TICK_MS": "host_tick_ms",
        }
        for suffix, name in numeric.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw is not None:
                try:
                    overrides[name] = float(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{suffix} must be a number, got {raw!r}") from None

        raw = env.get(ENV_PREFIX + "AUDIT_MAX_ENTRIES")
        if raw is not None:
            try:
                overrides["audit_max_entries"] = int(raw)
            except ValueError:
                raise ValueError(f"{ENV_PREFIX}AUDIT_MAX_ENTRIES must be an integer, got {raw!r}") from None

        if env.get(ENV_PREFIX + "EXPORT_DIR"):
            overrides["export_dir"] = env[ENV_PREFIX + "EXPORT_DIR"]
        if env.get(ENV_PREFIX + "LOG_LEVEL"):
            overrides["log_level"] = env[ENV_PREFIX + "LOG_LEVEL"].upper()

        return replace(config, **overrides)
