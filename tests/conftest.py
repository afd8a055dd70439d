"""
Shared fixtures: an in-memory stand-in for a Playwright page.

A fake site is a mapping ``url -> page dict``::

    {
        "title": "Home",
        "description": "meta description",
        "links": ["https://site.test/a"],          # anchors present on load
        "lazy_links": ["https://site.test/more"],  # revealed by scrolling down
        "elements": [{"tag": "button", "text": "Learn More"}],
        "events": [("console", SimpleNamespace(type="log", text="hi"))],
        "on_enter": "https://site.test/dashboard", # Enter key navigates here
        "audit": [{"id": "image-alt", "nodes": [...]}],  # axe violations
    }

Element dicts accept ``navigates_to`` (click loads that URL) and
``visible`` (defaults to True).
"""

from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeout

import explorer.accessibility as accessibility_module
from explorer.artifacts import ArtifactStore
from explorer.auth.login_handler import (
    INPUT_SELECTOR,
    IS_CONNECTED_JS,
    LOGIN_AFFORDANCE_SELECTOR,
)
from explorer.context import CrawlContext
from explorer.interaction import CLICKABLE_SELECTOR, DESCRIBE_JS, FILLABLE_SELECTOR
from explorer.models import ExplorationResult
from explorer.run_config import ExplorerRunConfig
from explorer.scheduler import SCROLL_BOTTOM_JS

SITE = "https://site.test"

DEFAULT_AUDIT = [
    {"id": "image-alt", "impact": "critical", "nodes": [{}, {}]},
    {"id": "label", "impact": "critical", "nodes": [{}]},
    {"id": "color-contrast", "impact": "serious", "nodes": [{}, {}, {}]},
]


class FakeElement:
    def __init__(self, page, tag="button", text="", id="", name="", type="",
                 role="", value="", aria_label="", placeholder="",
                 autocomplete="", visible=True, navigates_to=None):
        self.page = page
        self.tag = tag
        self.text = text
        self.id = id
        self.name = name
        self.type = type
        self.role = role
        self.value = value
        self.aria_label = aria_label
        self.placeholder = placeholder
        self.autocomplete = autocomplete
        self.visible = visible
        self.navigates_to = navigates_to
        self.connected = True
        self.clicks = 0
        self.fills = []

    async def is_visible(self):
        return self.visible and self.connected

    async def evaluate(self, script, arg=None):
        if not self.connected:
            raise RuntimeError("Element is not attached to the DOM")
        if script == DESCRIBE_JS:
            return {
                "tag": self.tag,
                "id": self.id,
                "name": self.name,
                "type": self.type,
                "role": self.role,
                "text": self.text,
                "value": self.value,
                "ariaLabel": self.aria_label,
                "placeholder": self.placeholder,
                "autocomplete": self.autocomplete,
            }
        if script == IS_CONNECTED_JS:
            return self.connected
        return None

    async def click(self, timeout=None):
        if not self.connected:
            raise RuntimeError("Element is not attached to the DOM")
        self.clicks += 1
        if self.navigates_to:
            self.page.load(self.navigates_to)

    async def fill(self, value, timeout=None):
        if not self.connected:
            raise RuntimeError("Element is not attached to the DOM")
        self.value = value
        self.fills.append(value)

    # ── selector matching ─────────────────────────────────────────

    @property
    def is_button(self):
        return (
            self.tag == "button"
            or (self.tag == "input" and self.type in ("submit", "button"))
            or self.role == "button"
        )

    @property
    def is_fillable(self):
        return (self.tag == "input" and self.type != "hidden") or self.tag == "textarea"


class FakeKeyboard:
    def __init__(self, page):
        self.page = page
        self.pressed = []

    async def press(self, key):
        self.pressed.append(key)
        if key == "Enter" and self.page.on_enter:
            self.page.load(self.page.on_enter)


class FakePage:
    def __init__(self, site=None, failing=()):
        self.site = site or {}
        self.failing = set(failing)
        self.url = "about:blank"
        self.title_text = ""
        self.description = ""
        self.links = []
        self.lazy_links = []
        self.elements = []
        self.audit = DEFAULT_AUDIT
        self.on_enter = None
        self.handlers = defaultdict(list)
        self.keyboard = FakeKeyboard(self)
        self.goto_calls = []
        self.screenshots = []
        self.scrolls = 0
        self.closed = False

    def load(self, url):
        layout = self.site.get(url, {})
        for el in self.elements:
            el.connected = False
        self.url = url
        self.title_text = layout.get("title", "")
        self.description = layout.get("description", "")
        self.links = list(layout.get("links", []))
        self.lazy_links = list(layout.get("lazy_links", []))
        self.elements = [FakeElement(self, **e) for e in layout.get("elements", [])]
        self.audit = layout.get("audit", DEFAULT_AUDIT)
        self.on_enter = layout.get("on_enter")
        for event, payload in layout.get("events", []):
            self.emit(event, payload)

    def emit(self, event, payload):
        for handler in self.handlers[event]:
            handler(payload)

    def on(self, event, handler):
        self.handlers[event].append(handler)

    async def goto(self, url, timeout=None, wait_until=None):
        self.goto_calls.append(url)
        if url in self.failing:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.load(url)

    async def title(self):
        return self.title_text

    async def content(self):
        meta = ""
        if self.description:
            meta = f'<meta name="description" content="{self.description}">'
        return f"<html><head><title>{self.title_text}</title>{meta}</head><body></body></html>"

    async def screenshot(self, path=None, full_page=False, timeout=None):
        if path:
            Path(path).write_bytes(b"\x89PNG fake")
        self.screenshots.append((path, full_page))
        return b""

    async def evaluate(self, script, arg=None):
        if script == SCROLL_BOTTOM_JS:
            self.scrolls += 1
            self.links.extend(self.lazy_links)
            self.lazy_links = []
        return None

    async def eval_on_selector_all(self, selector, script):
        return list(self.links)

    async def query_selector_all(self, selector):
        if selector == CLICKABLE_SELECTOR:
            return [e for e in self.elements if e.is_button]
        if selector == FILLABLE_SELECTOR:
            return [e for e in self.elements if e.is_fillable]
        if selector == INPUT_SELECTOR:
            return [e for e in self.elements if e.tag == "input"]
        if selector == LOGIN_AFFORDANCE_SELECTOR:
            return [e for e in self.elements if e.tag == "a" or e.is_button]
        return []


class FakeAxe:
    """Stands in for the axe-core runner; reports the page's ``audit`` list."""

    def __init__(self):
        self.runs = []

    async def run(self, page):
        self.runs.append(page.url)
        if page.audit is None:
            raise RuntimeError("axe is not defined")
        return SimpleNamespace(response={"violations": list(page.audit)})


@pytest.fixture(autouse=True)
def fake_axe(monkeypatch):
    axe = FakeAxe()
    monkeypatch.setattr(accessibility_module, "_axe", axe)
    return axe


def fake_browser(page, video_name="video-1a2b3c.webm", launch_error=None):
    """Replacement for ``explorer.session.open_browser``.

    Writes a recording into the video directory on exit, the way closing
    a recording context finalizes the real one.
    """
    @asynccontextmanager
    async def _open_browser(config, video_dir):
        if launch_error is not None:
            raise launch_error
        try:
            yield page
        finally:
            page.closed = True
            Path(video_dir, video_name).write_bytes(b"webm")

    return _open_browser


@pytest.fixture
def fast_config(tmp_path):
    """Defaults with every settle / delay removed and short budgets."""
    return ExplorerRunConfig(
        max_duration_ms=10_000,
        min_duration_ms=0,
        settle_after_navigation_ms=0,
        delay_after_click_ms=0,
        scroll_settle_ms=0,
        deep_idle_ms=20,
        auth_timeout_ms=200,
        auth_poll_interval_ms=10,
        login_affordance_settle_ms=0,
        artifacts_root=str(tmp_path / "artifacts"),
    )


@pytest.fixture
def make_ctx(fast_config):
    def _make(**overrides):
        cfg = replace(fast_config, **overrides)
        result = ExplorationResult(url=f"{SITE}/")
        artifacts = ArtifactStore(cfg.artifacts_root, "job-test")
        artifacts.ensure()
        return CrawlContext.create(cfg, result, artifacts)
    return _make


@pytest.fixture
def three_page_site():
    return {
        f"{SITE}/": {
            "title": "Home",
            "description": "A tiny static site",
            "links": [f"{SITE}/a", f"{SITE}/b/", "https://other.test/x", f"{SITE}/brochure.pdf"],
        },
        f"{SITE}/a": {"title": "A", "links": [f"{SITE}/", f"{SITE}/b?ref=a"]},
        f"{SITE}/b/": {"title": "B", "links": [f"{SITE}/a#"]},
    }
