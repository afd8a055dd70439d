"""
Exploration Session
===================
Top-level orchestration of one exploration run for one job.

Sequence:
    1. Ensure the job's artifact directory exists
    2. Acquire browser + recording context + page (scoped)
    3. Attach console / page-error / network listeners
    4. Navigate to the start URL (failure here is session-fatal)
    5. Public phase
    6. With credentials: return to the start URL, attempt login, and if
       the handler says proceed, forget the start key and run the
       authenticated phase from wherever the login left the page
    7. Release the browser (always), then attach the finalized video

Session-fatal errors never propagate: the result carries whatever was
gathered plus ``error``.  Callers distinguish an incomplete result by an
empty ``pagesVisited`` / ``screenshots``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .artifacts import ArtifactStore
from .auth import Credentials, LoginHandler
from .browser import open_browser
from .context import CrawlContext
from .models import ActionType, ExplorationResult, Phase
from .run_config import ExplorerRunConfig
from .scheduler import CrawlScheduler
from .utils import normalize_url

logger = logging.getLogger(__name__)


class ExplorationError(Exception):
    """Session-fatal failure (browser launch, initial navigation)."""


class ExplorationSession:
    """
    One exploration run, owning the browser for its whole lifetime.

    Usage::

        session = ExplorationSession("job-42", ExplorerRunConfig(max_pages=10))
        result = session.explore("https://example.com")          # sync
        result = await session.run("https://example.com", creds)  # async
    """

    def __init__(self, job_id: str, config: ExplorerRunConfig = None):
        self.job_id = job_id
        self.config = config or ExplorerRunConfig()
        self.ctx: Optional[CrawlContext] = None

    def explore(self, url: str, credentials: Optional[Credentials] = None) -> ExplorationResult:
        """Synchronous wrapper around ``run``."""
        return asyncio.run(self.run(url, credentials))

    async def run(self, url: str, credentials: Optional[Credentials] = None) -> ExplorationResult:
        cfg = self.config
        result = ExplorationResult(url=url)
        artifacts = ArtifactStore(cfg.artifacts_root, self.job_id)
        ctx = CrawlContext.create(cfg, result, artifacts)
        self.ctx = ctx

        cfg.log_summary(url)
        logger.info(f"[SESSION] Job {self.job_id} — artifacts in {artifacts.directory}")

        try:
            artifacts.ensure()
            async with open_browser(cfg, artifacts.directory) as page:
                self._attach_listeners(page, result)
                await self._run_phases(page, url, credentials)
        except Exception as e:
            result.error = str(e) or type(e).__name__
            logger.error(f"[SESSION] Exploration failed: {result.error}", exc_info=True)

        # Only valid once the recording context has been closed
        result.video_path = artifacts.find_video()
        if result.video_path is None:
            logger.warning(f"[SESSION] No recording found in {artifacts.directory}")

        result.stats = ctx.monitor.snapshot().to_dict()
        logger.info(ctx.monitor.format_summary())
        return result

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _run_phases(self, page, url: str, credentials: Optional[Credentials]) -> None:
        ctx = self.ctx
        cfg = self.config

        try:
            await page.goto(
                url,
                timeout=ctx.bounded_timeout(cfg.start_timeout_ms),
                wait_until="domcontentloaded",
            )
        except Exception as e:
            raise ExplorationError(f"Could not load start URL {url}: {e}") from e
        await self._settle(cfg.settle_after_navigation_ms)

        await CrawlScheduler(ctx).run(page, url, Phase.PUBLIC)

        if credentials is None or credentials.is_empty:
            return

        if ctx.monitor.max_exceeded() or ctx.pages_exhausted():
            logger.info("[AUTH] Session budget exhausted — skipping authentication")
            return

        try:
            await page.goto(
                url,
                timeout=ctx.bounded_timeout(cfg.navigation_timeout_ms),
                wait_until="domcontentloaded",
            )
            ctx.result.log_action(ActionType.NAVIGATION, f"Returned to {url} for login")
            await self._settle(cfg.settle_after_navigation_ms)
        except Exception as e:
            logger.warning(f"[AUTH] Could not return to start URL: {e}")

        proceed = await LoginHandler(ctx).login(page, credentials)
        if not proceed:
            logger.info("[SESSION] Authenticated phase skipped")
            return

        ctx.visited.forget_start(normalize_url(url))
        await CrawlScheduler(ctx).run(page, page.url, Phase.AUTHENTICATED)

    async def _settle(self, ms: float) -> None:
        ms = min(ms, self.ctx.monitor.remaining_ms())
        if ms > 0:
            await asyncio.sleep(ms / 1000)

    # ------------------------------------------------------------------
    # Listeners (active across both phases)
    # ------------------------------------------------------------------

    @staticmethod
    def _attach_listeners(page, result: ExplorationResult) -> None:
        def on_console(msg):
            result.console_logs.append({"type": msg.type, "text": msg.text})

        def on_page_error(error):
            result.console_logs.append({"type": "error", "text": str(getattr(error, "message", error))})

        def on_request_failed(request):
            result.network_errors.append({"url": request.url, "failure": request.failure})

        def on_response(response):
            if response.status >= 400:
                result.network_errors.append({"url": response.url, "status": response.status})

        page.on("console", on_console)
        page.on("pageerror", on_page_error)
        page.on("requestfailed", on_request_failed)
        page.on("response", on_response)
