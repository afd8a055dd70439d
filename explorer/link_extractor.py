"""
Link Extractor
==============
Same-origin anchor discovery for the BFS frontier.

Collects every anchor target in one JS round-trip (the browser resolves
relative hrefs for us via ``a.href``), then filters in Python:

  - same origin as the reference origin only
  - not the exact URL of the page currently loaded (no self-loops)
  - not a known non-navigable resource (documents, images, media)

Best-effort: any failure yields an empty set.
"""

from __future__ import annotations

import logging
from typing import Set

from .utils import URLNormalizer

logger = logging.getLogger(__name__)

ANCHOR_SELECTOR = "a[href]"
_HREFS_JS = "els => els.map(a => a.href)"

_normalizer = URLNormalizer()


async def extract_links(page, reference_origin: str) -> Set[str]:
    """Return candidate same-origin URLs found on the loaded page.

    Args:
        page:             Playwright page (already loaded).
        reference_origin: ``scheme://host[:port]`` the crawl is confined to.

    Returns:
        Unordered set of raw (non-normalized) absolute URLs.
    """
    try:
        hrefs = await page.eval_on_selector_all(ANCHOR_SELECTOR, _HREFS_JS)
        current_url = page.url
    except Exception as e:
        logger.debug(f"[LINKS] Extraction failed: {e}")
        return set()

    links: Set[str] = set()
    for href in hrefs or []:
        if not isinstance(href, str) or not href:
            continue
        if href == current_url:
            continue
        if not _normalizer.is_same_origin(href, reference_origin):
            continue
        if _normalizer.has_skip_extension(href):
            continue
        links.add(href)
    return links
