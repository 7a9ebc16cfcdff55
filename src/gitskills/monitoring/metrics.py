"""Per-run API usage counters."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RunStats:
    """API usage and timing for a single run.

    One instance is owned by the GitHub client of a run and shared by
    reference with whatever reports on it; nothing here is global.
    """

    api_calls: int = 0
    search_calls: int = 0
    waits: int = 0
    waited_seconds: float = 0.0
    start_time: float = field(default_factory=time.monotonic)

    @property
    def total_calls(self) -> int:
        return self.api_calls + self.search_calls

    @property
    def elapsed_seconds(self) -> float:
        """Seconds since the run started."""
        return time.monotonic() - self.start_time

    def record_call(self, search: bool = False) -> None:
        if search:
            self.search_calls += 1
        else:
            self.api_calls += 1

    def record_wait(self, seconds: float) -> None:
        if seconds > 0:
            self.waits += 1
            self.waited_seconds += seconds

    def to_dict(self) -> dict[str, Any]:
        """Serialize counters for reports."""
        return {
            "api_calls": self.api_calls,
            "search_calls": self.search_calls,
            "total_calls": self.total_calls,
            "waits": self.waits,
            "waited_seconds": round(self.waited_seconds, 1),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }
