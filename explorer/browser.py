"""
Browser Lifecycle
=================
Scoped acquisition of Playwright → browser → recording context → page.

Usage::

    async with open_browser(config, video_dir) as page:
        await page.goto(url)

Release runs on every exit path.  Closing the context is what finalizes
the video file, so it must happen before anyone looks for the recording.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from playwright.async_api import Page, async_playwright

from .run_config import ExplorerRunConfig

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = [
    '--disable-gpu',
    '--no-sandbox',
    '--disable-dev-shm-usage',
    '--disable-background-networking',
    '--disable-default-apps',
    '--disable-extensions',
    '--disable-sync',
    '--disable-translate',
    '--no-first-run',
]


@asynccontextmanager
async def open_browser(config: ExplorerRunConfig, video_dir: Path) -> AsyncIterator[Page]:
    """Yield a page whose context records video into *video_dir*."""
    playwright = browser = context = None
    try:
        playwright = await async_playwright().start()
        browser = await playwright.chromium.launch(
            headless=config.headless,
            args=_LAUNCH_ARGS,
        )
        viewport = {'width': config.viewport_width, 'height': config.viewport_height}
        context = await browser.new_context(
            user_agent=config.user_agent,
            viewport=viewport,
            record_video_dir=str(video_dir),
            record_video_size=viewport,
        )
        page = await context.new_page()
        logger.info(
            f"[SESSION] Browser ready (headless={config.headless}, "
            f"viewport={config.viewport_width}x{config.viewport_height})"
        )
        yield page
    finally:
        if context is not None:
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"[SESSION] Context close failed: {e}")
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"[SESSION] Browser close failed: {e}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning(f"[SESSION] Playwright stop failed: {e}")
        logger.info("[SESSION] Browser released")
