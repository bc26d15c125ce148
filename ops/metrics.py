from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class Timer:
    start: float = field(default_factory=time.monotonic)

    def ms(self) -> int:
        return int((time.monotonic() - self.start) * 1000)


@dataclass
class DecisionCounters:
    """Per-event tallies emitted as a single log-based metrics line."""

    candidates: int = 0
    notified: int = 0
    suppressed: dict = field(default_factory=dict)

    def record_suppressed(self, reason: str) -> None:
        self.suppressed[reason] = self.suppressed.get(reason, 0) + 1

    def as_dict(self) -> dict:
        return {
            "candidates": self.candidates,
            "notified": self.notified,
            "suppressed_total": sum(self.suppressed.values()),
            "suppressed_by_reason": dict(self.suppressed),
        }
