"""
Crawl Scheduler
===============
Breadth-first traversal for one phase (public or authenticated).

States::

    Visiting ──queue empty, min not reached──▶ DeepExploring
        ▲                                          │
        └────────── new links found ───────────────┘
    any state ──page budget / max duration / (queue empty ∧ min reached)──▶ Done

Budgets (all from ``ExplorerRunConfig``):
  - ``max_pages``        session-wide page count
  - ``max_duration_ms``  session wall clock, checked at every loop boundary
  - ``min_duration_ms``  the phase may not end on an empty queue before this

DeepExploring scrolls to the content extremes to trigger lazy loading,
re-extracts links, and re-runs the interaction explorer so newly revealed
elements get exercised.  With nothing new it idles briefly and retries.

The queue holds raw URLs; only normalized keys go into the visited set.
If an interaction navigates away, the page is brought back to the page under
analysis before anything else touches it; same-origin landings are queued.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Deque, Iterable

from playwright.async_api import TimeoutError as PlaywrightTimeout

from .capture import capture_page
from .context import CrawlContext
from .interaction import explore_interactions
from .link_extractor import extract_links
from .models import ActionType, Phase
from .utils import normalize_url, origin_of

logger = logging.getLogger(__name__)

SCROLL_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TOP_JS = "() => window.scrollTo(0, 0)"

# Stop reasons recorded in the session stats
STOP_MAX_DURATION = "max_duration"
STOP_MAX_PAGES = "max_pages"
STOP_QUEUE_EXHAUSTED = "queue_exhausted"


class CrawlScheduler:
    """Runs one BFS phase against the session's page.

    Usage::

        scheduler = CrawlScheduler(ctx)
        reason = await scheduler.run(page, start_url, Phase.PUBLIC)
    """

    def __init__(self, ctx: CrawlContext):
        self.ctx = ctx
        self.config = ctx.config
        self.monitor = ctx.monitor
        # URL of the page currently under analysis
        self._anchor = ""

    async def run(self, page, start_url: str, phase: Phase) -> str:
        """Crawl from *start_url* until a budget fires; return the stop reason."""
        origin = origin_of(start_url) or start_url
        queue: Deque[str] = deque([start_url])
        self._anchor = start_url
        self.ctx.visited.add(normalize_url(start_url))

        logger.info(f"[CRAWL] Phase '{phase.value}' starting at {start_url[:80]}")

        while True:
            if self.monitor.max_exceeded():
                reason = STOP_MAX_DURATION
                break
            if self.ctx.pages_exhausted():
                reason = STOP_MAX_PAGES
                break

            if not queue:
                if self.monitor.min_reached():
                    reason = STOP_QUEUE_EXHAUSTED
                    break
                found = await self.deep_explore(page, origin, queue)
                if not found:
                    await self._idle()
                continue

            await self._visit(page, queue.popleft(), origin, queue)

        self.monitor.record_stop(phase.value, reason)
        return reason

    # ------------------------------------------------------------------
    # Visiting
    # ------------------------------------------------------------------

    async def _goto(self, page, url: str) -> bool:
        """Soft navigation; failures are counted and logged, never raised."""
        try:
            await page.goto(
                url,
                timeout=self.ctx.bounded_timeout(self.config.navigation_timeout_ms),
                wait_until="domcontentloaded",
            )
        except PlaywrightTimeout:
            self.monitor.metrics.navigation_failures += 1
            logger.warning(f"[CRAWL] Navigation timeout: {url[:80]}")
            return False
        except Exception as e:
            self.monitor.metrics.navigation_failures += 1
            logger.warning(f"[CRAWL] Navigation failed: {url[:80]} — {e}")
            return False
        await self._sleep(self.config.settle_after_navigation_ms)
        return True

    async def _visit(self, page, url: str, origin: str, queue: Deque[str]) -> None:
        if normalize_url(page.url) != normalize_url(url):
            if not await self._goto(page, url):
                return
        self._anchor = page.url

        snapshot = await capture_page(page, self.ctx)
        self.ctx.result.add_page(snapshot)
        self.monitor.metrics.pages_visited += 1
        self.ctx.result.log_action(ActionType.NAVIGATION, f"Visited {snapshot.url}")
        logger.info(
            f"[CRAWL] Page {self.ctx.page_count}/{self.config.max_pages}: {snapshot.url[:80]}"
        )

        await explore_interactions(page, self.ctx)
        if self.monitor.max_exceeded():
            return
        if not await self._return_to_anchor(page, origin, queue):
            return

        self._enqueue(await extract_links(page, origin), queue)

    async def _return_to_anchor(self, page, origin: str, queue: Deque[str]) -> bool:
        """Bring the page back to the page under analysis after a click left it.

        A same-origin landing page is queued so it gets captured on its own
        visit; foreign pages are never interacted with.  Returns False if the
        page is still elsewhere afterwards.
        """
        current = page.url
        if normalize_url(current) == normalize_url(self._anchor):
            return True

        if origin_of(current) == origin:
            self._enqueue([current], queue)
        else:
            logger.info(f"[CRAWL] Interaction left origin ({current[:80]}); returning")

        if self.monitor.max_exceeded() or not await self._goto(page, self._anchor):
            return False
        self.ctx.result.log_action(ActionType.NAVIGATION, f"Returned to {self._anchor}")
        return origin_of(page.url) == origin

    def _enqueue(self, links: Iterable[str], queue: Deque[str]) -> int:
        added = 0
        for link in sorted(links):
            if self.ctx.visited.add(normalize_url(link)):
                queue.append(link)
                added += 1
        self.monitor.metrics.links_discovered += added
        return added

    # ------------------------------------------------------------------
    # DeepExploring
    # ------------------------------------------------------------------

    async def deep_explore(self, page, origin: str, queue: Deque[str]) -> int:
        """One deep-exploration cycle; returns the number of new URLs queued."""
        self.monitor.metrics.deep_cycles += 1
        cycle = self.monitor.metrics.deep_cycles
        logger.info(
            f"[DEEP] Cycle {cycle} — queue empty, "
            f"{self.monitor.until_min_ms() / 1000:.1f}s until minimum duration"
        )

        queued_before = len(queue)
        if not await self._return_to_anchor(page, origin, queue):
            logger.info(f"[DEEP] Cycle {cycle} skipped: page is off {origin}")
            return len(queue) - queued_before
        added = len(queue) - queued_before

        for script in (SCROLL_BOTTOM_JS, SCROLL_TOP_JS):
            if self.monitor.max_exceeded():
                return added
            try:
                await page.evaluate(script)
            except Exception as e:
                logger.debug(f"[DEEP] Scroll failed: {e}")
            await self._sleep(self.config.scroll_settle_ms)
            added += self._enqueue(await extract_links(page, origin), queue)

        if self.monitor.max_exceeded():
            return added
        await explore_interactions(page, self.ctx)

        if not self.monitor.max_exceeded():
            queued_before = len(queue)
            if await self._return_to_anchor(page, origin, queue):
                self._enqueue(await extract_links(page, origin), queue)
            added += len(queue) - queued_before

        if added:
            logger.info(f"[DEEP] Cycle {cycle} revealed {added} new link(s)")
        return added

    async def _idle(self) -> None:
        await self._sleep(min(self.config.deep_idle_ms, self.monitor.until_min_ms()))

    async def _sleep(self, ms: float) -> None:
        ms = min(ms, self.monitor.remaining_ms())
        if ms > 0:
            await asyncio.sleep(ms / 1000)
