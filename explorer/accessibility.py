"""
Accessibility Summary
=====================
Per-page accessibility audit for the analysis service.  axe-core is
injected into the loaded page (via ``axe-playwright-python``) and run once;
the violated rules are then scored in Python.

Summary shape::

    {"url": ..., "violations": 4, "issues": {"image-alt": 3, ...}, "score": 92}

``violations`` counts violated rules (one per axe result entry), ``issues``
maps each violated rule id to the number of offending nodes.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from axe_playwright_python.async_playwright import Axe

logger = logging.getLogger(__name__)

# Score drops by this many points per violated rule (floor 0)
POINTS_PER_VIOLATION = 2

_axe: Optional[Axe] = None


def get_axe() -> Axe:
    """Shared axe runner; the axe-core script is loaded once per process."""
    global _axe
    if _axe is None:
        _axe = Axe()
    return _axe


def summarize(url: str, violations: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Turn axe violation entries into the per-page summary."""
    issues: Dict[str, int] = {}
    for violation in violations or []:
        rule = violation.get("id") or "unknown"
        issues[rule] = issues.get(rule, 0) + max(1, len(violation.get("nodes") or []))
    count = len(violations or [])
    return {
        "url": url,
        "violations": count,
        "issues": issues,
        "score": max(0, 100 - count * POINTS_PER_VIOLATION),
    }


async def audit_page(page) -> Optional[Dict[str, Any]]:
    """Audit the loaded page; None if axe could not run."""
    try:
        results = await get_axe().run(page)
    except Exception as e:
        logger.debug(f"[A11Y] Audit failed on {page.url[:80]}: {e}")
        return None
    response = getattr(results, "response", None)
    if not isinstance(response, dict):
        return None
    return summarize(page.url, response.get("violations", []))
