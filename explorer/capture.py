"""
Page Capture
============
Turns the currently loaded page into a ``PageSnapshot`` and takes the
follow-up screenshots the interaction explorer asks for.

Every browser call here is soft: a failed screenshot or title lookup is
logged and the snapshot carries whatever was obtained.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from bs4 import BeautifulSoup
from playwright.async_api import TimeoutError as PlaywrightTimeout

from .accessibility import audit_page
from .context import CrawlContext
from .models import ActionType, PageSnapshot

logger = logging.getLogger(__name__)

_BS_PARSER = "lxml"


def _clean_text(text: str) -> str:
    return " ".join((text or "").split())


def parse_page_metadata(html: str) -> Tuple[str, str]:
    """Extract ``(title, meta_description)`` from raw HTML."""
    if not html:
        return "", ""
    soup = BeautifulSoup(html, _BS_PARSER)

    title = ""
    title_tag = soup.find("title")
    if title_tag and title_tag.string:
        title = _clean_text(title_tag.string)
    else:
        og_title = soup.find("meta", property="og:title")
        if og_title and og_title.get("content"):
            title = _clean_text(og_title["content"])

    description = ""
    for attrs in ({"name": "description"}, {"property": "og:description"},
                  {"name": "twitter:description"}):
        meta = soup.find("meta", attrs=attrs)
        if meta and meta.get("content"):
            description = _clean_text(meta["content"])
            break

    return title, description


async def capture_page(page, ctx: CrawlContext) -> PageSnapshot:
    """Screenshot + metadata (+ accessibility for the first pages)."""
    page_index = ctx.page_count
    snapshot = PageSnapshot(url=page.url)

    try:
        snapshot.title = await page.title()
    except Exception as e:
        logger.debug(f"[CAPTURE] Title lookup failed: {e}")

    name = ctx.artifacts.page_screenshot_name(page_index)
    try:
        await page.screenshot(
            path=str(ctx.artifacts.path_for(name)),
            full_page=True,
            timeout=ctx.bounded_timeout(ctx.config.screenshot_timeout_ms),
        )
        snapshot.screenshot = name
        ctx.monitor.metrics.screenshots += 1
    except PlaywrightTimeout:
        logger.warning(f"[CAPTURE] Screenshot timed out on {snapshot.url[:80]}")
    except Exception as e:
        logger.warning(f"[CAPTURE] Screenshot failed on {snapshot.url[:80]}: {e}")

    if not ctx.result.meta_description or not ctx.result.title:
        try:
            title, description = parse_page_metadata(await page.content())
            if not snapshot.title:
                snapshot.title = title
            if not ctx.result.meta_description:
                ctx.result.meta_description = description
        except Exception as e:
            logger.debug(f"[CAPTURE] Metadata parse failed: {e}")

    if page_index < ctx.config.accessibility_page_limit:
        snapshot.accessibility = await audit_page(page)

    return snapshot


async def capture_interaction(page, ctx: CrawlContext) -> Optional[str]:
    """Viewport screenshot after an interaction; appended and logged."""
    name = ctx.artifacts.interaction_screenshot_name()
    try:
        await page.screenshot(
            path=str(ctx.artifacts.path_for(name)),
            timeout=ctx.bounded_timeout(ctx.config.screenshot_timeout_ms),
        )
    except Exception as e:
        logger.debug(f"[CAPTURE] Interaction screenshot failed: {e}")
        return None

    ctx.result.screenshots.append(name)
    ctx.result.log_action(ActionType.SCREENSHOT, f"Captured {name} after interaction")
    ctx.monitor.metrics.screenshots += 1
    return name
