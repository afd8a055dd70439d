"""
Crawl Context
=============
Session-scoped mutable state, passed explicitly into every phase and
every sub-component call.  Nothing here is module-global, so repeated or
parallel sessions (and tests) never share state.

The context never holds a page reference: sub-components receive the page
per call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Set

from .artifacts import ArtifactStore
from .models import ExplorationResult
from .monitor import SessionMonitor
from .run_config import ExplorerRunConfig

logger = logging.getLogger(__name__)


class VisitedSet:
    """
    Normalized URL keys seen this session.

    Grows monotonically.  The one permitted removal is ``forget_start``,
    used once between the public and authenticated phases so the
    post-login landing state is analysed again.
    """

    def __init__(self):
        self._keys: Set[str] = set()
        self._forgotten = False

    def add(self, key: str) -> bool:
        """Add *key*; return True if it was new."""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def forget_start(self, key: str) -> None:
        if self._forgotten:
            logger.warning("[CRAWL] Start key already forgotten once this session")
        self._forgotten = True
        self._keys.discard(key)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)


@dataclass
class CrawlContext:
    """Everything a phase needs besides the page itself."""
    config: ExplorerRunConfig
    result: ExplorationResult
    artifacts: ArtifactStore
    monitor: SessionMonitor
    visited: VisitedSet = field(default_factory=VisitedSet)
    # page key -> element fingerprints already interacted with
    interacted: Dict[str, Set[str]] = field(default_factory=dict)
    # page key -> clicks / fills spent on that page
    clicks_per_page: Dict[str, int] = field(default_factory=dict)
    fills_per_page: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        config: ExplorerRunConfig,
        result: ExplorationResult,
        artifacts: ArtifactStore,
        monitor: SessionMonitor = None,
    ) -> "CrawlContext":
        if monitor is None:
            monitor = SessionMonitor(config.max_duration_ms, config.min_duration_ms)
        return cls(config=config, result=result, artifacts=artifacts, monitor=monitor)

    @property
    def page_count(self) -> int:
        return len(self.result.pages_visited)

    def pages_exhausted(self) -> bool:
        return self.page_count >= self.config.max_pages

    def bounded_timeout(self, timeout_ms: int) -> int:
        """Clamp a primitive's timeout to the remaining session budget.

        Never returns 0 — Playwright treats 0 as "wait forever".
        """
        return max(1, int(min(timeout_ms, self.monitor.remaining_ms())))

    def seen_elements(self, page_key: str) -> Set[str]:
        return self.interacted.setdefault(page_key, set())
