"""
Interaction Explorer
====================
Bounded, guarded interaction with the page currently loaded.

Responsibilities:
  1. **discover**         — enumerate button-like and fillable elements
  2. **click phase**      — click non-destructive buttons (capped per page),
                            screenshot after each click
  3. **fill phase**       — put synthetic values into empty text fields,
                            never into password fields
  4. **dedup**            — remember element fingerprints per page so a
                            deep-exploration pass only touches new elements

Guardrails (hard-coded, not configurable):
  - controls whose text reads destructive (delete, remove, sign out,
    log out ...) are never clicked
  - password-typed or password-named fields are never filled
  - fields that already hold a value are never overwritten

Every failure is swallowed: interaction must never abort the crawl.
This module does NOT own navigation or the browser lifecycle.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .capture import capture_interaction
from .context import CrawlContext
from .heuristics import (
    NON_TEXT_INPUT_TYPES,
    SyntheticValueKind,
    classify_as_destructive,
    classify_field_semantic,
    is_password_field,
    synthetic_value,
)
from .models import ActionType
from .utils import normalize_url

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selector catalogue
# ---------------------------------------------------------------------------
CLICKABLE_SELECTOR = (
    'button:not([disabled]), '
    'input[type="submit"]:not([disabled]), '
    'input[type="button"]:not([disabled]), '
    '[role="button"]:not([disabled])'
)

FILLABLE_SELECTOR = 'input:not([type="hidden"]), textarea'

# One round-trip per element: everything the guardrails and the
# action log need.  ``value`` is read for emptiness checks only and
# is never logged.
DESCRIBE_JS = """el => ({
    tag:          el.tagName.toLowerCase(),
    id:           el.id || '',
    name:         el.getAttribute('name') || '',
    type:         (el.getAttribute('type') || '').toLowerCase(),
    role:         el.getAttribute('role') || '',
    text:         (el.innerText || '').trim().substring(0, 100),
    value:        (typeof el.value === 'string') ? el.value : '',
    ariaLabel:    el.getAttribute('aria-label') || '',
    placeholder:  el.getAttribute('placeholder') || '',
    autocomplete: el.getAttribute('autocomplete') || '',
})"""


@dataclass
class ElementInfo:
    """Python-side view of ``DESCRIBE_JS`` output."""
    tag: str = ""
    id: str = ""
    name: str = ""
    type: str = ""
    role: str = ""
    text: str = ""
    value: str = ""
    aria_label: str = ""
    placeholder: str = ""
    autocomplete: str = ""

    @classmethod
    def from_js(cls, data: Optional[Dict[str, Any]]) -> "ElementInfo":
        data = data or {}
        return cls(
            tag=data.get("tag", ""),
            id=data.get("id", ""),
            name=data.get("name", ""),
            type=data.get("type", ""),
            role=data.get("role", ""),
            text=data.get("text", ""),
            value=data.get("value", ""),
            aria_label=data.get("ariaLabel", ""),
            placeholder=data.get("placeholder", ""),
            autocomplete=data.get("autocomplete", ""),
        )

    @property
    def label(self) -> str:
        """Visible text a user would read on the control."""
        if self.text:
            return self.text
        if self.tag == "input" and self.type in ("submit", "button"):
            return self.value
        return self.aria_label

    @property
    def field_name(self) -> str:
        """Every attribute that hints at what a field is for."""
        return " ".join(
            p for p in (self.name, self.id, self.placeholder, self.aria_label) if p
        )

    def fingerprint(self) -> str:
        return f"{self.tag}|{self.id}|{self.name}|{self.type}|{self.label[:50]}"

    def selector(self) -> str:
        """Readable CSS-ish locator for the action log (never a value)."""
        if self.id:
            return f"{self.tag}#{self.id}"
        if self.name:
            return f'{self.tag}[name="{self.name}"]'
        if self.label:
            return f'{self.tag}:has-text("{self.label[:40]}")'
        if self.type:
            return f'{self.tag}[type="{self.type}"]'
        return self.tag


async def describe(element) -> Optional[ElementInfo]:
    """Read an element's attributes; None if the handle is unusable."""
    try:
        return ElementInfo.from_js(await element.evaluate(DESCRIBE_JS))
    except Exception:
        return None


async def _is_visible(element) -> bool:
    try:
        return await element.is_visible()
    except Exception:
        return False


async def _query_all(page, selector: str) -> List:
    try:
        return await page.query_selector_all(selector)
    except Exception as e:
        logger.debug(f"[INTERACT] Query failed for {selector[:40]}: {e}")
        return []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def explore_interactions(page, ctx: CrawlContext) -> None:
    """Run the click phase then the fill phase on the loaded page.

    Appends ``click`` / ``screenshot`` / ``input`` entries to the
    action log of ``ctx.result``.  Returns nothing.
    """
    page_key = normalize_url(page.url)
    navigated = await _click_phase(page, ctx, page_key)
    if navigated:
        logger.info(f"[INTERACT] Click left {page_key[:80]} — skipping fill phase")
        return
    await _fill_phase(page, ctx, page_key)


async def _click_phase(page, ctx: CrawlContext, page_key: str) -> bool:
    """Click up to the per-page budget.  Returns True if the page navigated."""
    cfg = ctx.config
    seen = ctx.seen_elements(page_key)
    start_url = page.url

    for element in await _query_all(page, CLICKABLE_SELECTOR):
        if ctx.clicks_per_page.get(page_key, 0) >= cfg.max_interactions_per_page:
            logger.debug(f"[INTERACT] Click budget spent on {page_key[:80]}")
            break
        if ctx.monitor.max_exceeded():
            break

        if not await _is_visible(element):
            continue
        info = await describe(element)
        if info is None:
            continue

        fp = "click|" + info.fingerprint()
        if fp in seen:
            continue
        seen.add(fp)

        if classify_as_destructive(info.label):
            ctx.monitor.metrics.clicks_skipped_destructive += 1
            logger.info(f"[INTERACT] Skipping destructive control '{info.label[:40]}'")
            continue

        ctx.clicks_per_page[page_key] = ctx.clicks_per_page.get(page_key, 0) + 1
        try:
            await element.click(timeout=ctx.bounded_timeout(cfg.click_timeout_ms))
        except Exception as e:
            logger.debug(f"[INTERACT] Click failed on {info.selector()}: {e}")
            continue

        ctx.monitor.metrics.clicks += 1
        ctx.result.log_action(
            ActionType.CLICK,
            f"Clicked '{info.label[:60]}'" if info.label else f"Clicked {info.tag}",
            selector=info.selector(),
        )

        if cfg.delay_after_click_ms > 0:
            await asyncio.sleep(
                min(cfg.delay_after_click_ms, ctx.monitor.remaining_ms()) / 1000
            )
        await capture_interaction(page, ctx)

        if page.url != start_url:
            # Remaining handles belong to the previous document
            return True

    return False


async def _fill_phase(page, ctx: CrawlContext, page_key: str) -> None:
    """Fill empty, visible, non-password text fields with synthetic values."""
    cfg = ctx.config
    seen = ctx.seen_elements(page_key)

    for element in await _query_all(page, FILLABLE_SELECTOR):
        if ctx.fills_per_page.get(page_key, 0) >= cfg.max_interactions_per_page:
            break
        if ctx.monitor.max_exceeded():
            break

        if not await _is_visible(element):
            continue
        info = await describe(element)
        if info is None:
            continue
        if info.type in NON_TEXT_INPUT_TYPES:
            continue

        fp = "fill|" + info.fingerprint()
        if fp in seen:
            continue
        seen.add(fp)

        # Hard guardrail: never auto-fill anything that looks like a password
        if is_password_field(info.field_name, info.type, info.autocomplete):
            logger.debug(f"[INTERACT] Skipping password field {info.selector()}")
            continue
        if info.value:
            continue

        kind = classify_field_semantic(info.field_name, info.type)
        value = synthetic_value(kind)
        if value is None or kind == SyntheticValueKind.PASSWORD:
            continue

        ctx.fills_per_page[page_key] = ctx.fills_per_page.get(page_key, 0) + 1
        try:
            await element.fill(value, timeout=ctx.bounded_timeout(cfg.fill_timeout_ms))
        except Exception as e:
            logger.debug(f"[INTERACT] Fill failed on {info.selector()}: {e}")
            continue

        ctx.monitor.metrics.fills += 1
        ctx.result.log_action(
            ActionType.INPUT,
            f"Filled {kind.value} field with synthetic value",
            selector=info.selector(),
        )
