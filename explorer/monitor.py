"""
Session Monitor
===============
Wall-clock budgets and counters for one exploration session.

Tracks:
- Elapsed time against the max / min session duration budgets
- Pages visited, navigation failures, clicks, fills, screenshots
- Deep-exploration cycles and links discovered
- Per-phase stop reasons

Single writer: a session is driven by one coroutine, so no locking.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class SessionTimer:
    """Monotonic stopwatch started once per session."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start: float = clock()

    def restart(self) -> None:
        self._start = self._clock()

    def elapsed_ms(self) -> float:
        return (self._clock() - self._start) * 1000.0


@dataclass
class SessionMetrics:
    """Snapshot of all session counters at a point in time."""
    pages_visited: int = 0
    navigation_failures: int = 0
    clicks: int = 0
    clicks_skipped_destructive: int = 0
    fills: int = 0
    screenshots: int = 0
    deep_cycles: int = 0
    links_discovered: int = 0
    elapsed_sec: float = 0.0
    stop_reasons: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "pages_visited": self.pages_visited,
            "navigation_failures": self.navigation_failures,
            "clicks": self.clicks,
            "clicks_skipped_destructive": self.clicks_skipped_destructive,
            "fills": self.fills,
            "screenshots": self.screenshots,
            "deep_cycles": self.deep_cycles,
            "links_discovered": self.links_discovered,
            "elapsed_sec": round(self.elapsed_sec, 2),
            "stop_reasons": dict(self.stop_reasons),
        }


class SessionMonitor:
    """
    Budget checks plus counters for the running session.

    Usage::

        monitor = SessionMonitor(max_duration_ms=90_000, min_duration_ms=15_000)
        while not monitor.max_exceeded():
            ...
            monitor.metrics.clicks += 1
        logger.info(monitor.format_summary())
    """

    def __init__(
        self,
        max_duration_ms: int,
        min_duration_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_duration_ms = max_duration_ms
        self.min_duration_ms = min_duration_ms
        self.timer = SessionTimer(clock)
        self.metrics = SessionMetrics()

    # ── Budget checks ──────────────────────────────────────────────

    def elapsed_ms(self) -> float:
        return self.timer.elapsed_ms()

    def max_exceeded(self) -> bool:
        """True once the session has run for its maximum duration."""
        return self.elapsed_ms() >= self.max_duration_ms

    def min_reached(self) -> bool:
        """True once the session may end early."""
        return self.elapsed_ms() >= self.min_duration_ms

    def remaining_ms(self) -> float:
        """Time left before the max-duration budget fires (>= 0)."""
        return max(0.0, self.max_duration_ms - self.elapsed_ms())

    def until_min_ms(self) -> float:
        """Time left before the min-duration budget is met (>= 0)."""
        return max(0.0, self.min_duration_ms - self.elapsed_ms())

    # ── Reporting ──────────────────────────────────────────────────

    def record_stop(self, phase: str, reason: str) -> None:
        self.metrics.stop_reasons[phase] = reason
        logger.info(f"[CRAWL] Phase '{phase}' stopped: {reason}")

    def snapshot(self) -> SessionMetrics:
        self.metrics.elapsed_sec = self.elapsed_ms() / 1000.0
        return self.metrics

    def format_summary(self) -> str:
        m = self.snapshot()
        lines = [
            "=" * 65,
            "EXPLORATION SUMMARY",
            "=" * 65,
            f"  Pages visited:       {m.pages_visited}",
            f"  Navigation failures: {m.navigation_failures}",
            f"  Clicks:              {m.clicks} "
            f"({m.clicks_skipped_destructive} destructive skipped)",
            f"  Fields filled:       {m.fills}",
            f"  Screenshots:         {m.screenshots}",
            f"  Deep cycles:         {m.deep_cycles}",
            f"  Links discovered:    {m.links_discovered}",
            f"  Elapsed:             {m.elapsed_sec:.1f}s",
        ]
        for phase, reason in m.stop_reasons.items():
            lines.append(f"  Stop ({phase}):".ljust(23) + reason)
        lines.append("=" * 65)
        return "\n".join(lines)
