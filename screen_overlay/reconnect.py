"""Bounded exponential backoff for the annotation stream connection."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class ReconnectPolicy:
    max_attempts: int = 5
    initial_delay: float = 1.0
    multiplier: float = 2.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> Optional[float]:
        """Return seconds to wait before retry ``attempt`` (1-based), or None when exhausted."""
        if attempt < 1 or attempt > self.max_attempts:
            return None
        delay = self.initial_delay * (self.multiplier ** (attempt - 1))
        return max(0.0, min(delay, self.max_delay))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReconnectPolicy":
        defaults = cls()

        def _int(key: str, fallback: int) -> int:
            try:
                return max(0, int(data.get(key, fallback)))
            except (TypeError, ValueError):
                return fallback

        def _float(key: str, fallback: float) -> float:
            try:
                value = float(data.get(key, fallback))
            except (TypeError, ValueError):
                return fallback
            return value if value >= 0.0 else fallback

        return cls(
            max_attempts=_int("max_attempts", defaults.max_attempts),
            initial_delay=_float("initial_delay", defaults.initial_delay),
            multiplier=max(1.0, _float("multiplier", defaults.multiplier)),
            max_delay=_float("max_delay", defaults.max_delay),
        )
