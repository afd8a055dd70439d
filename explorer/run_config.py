"""
Unified Run Configuration
=========================
Single source of truth for ALL explorer defaults, budgets and timeouts.

Every module (CLI, session, scheduler, interaction explorer, auth handler)
reads from this object.  CLI flags populate it via ``from_cli_args``.

The four session budgets (pages, max / min wall-clock, interactions per
page) are part of the observable behaviour of a session and must not be
changed casually.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults: the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    # Session budgets
    "max_pages": 50,
    "max_duration_ms": 90_000,
    "min_duration_ms": 15_000,
    "max_interactions_per_page": 10,
    # Navigation
    "start_timeout_ms": 30_000,          # initial navigation (session-fatal on failure)
    "navigation_timeout_ms": 15_000,     # per queue entry (soft)
    "settle_after_navigation_ms": 1000,
    # Interaction
    "click_timeout_ms": 2000,
    "fill_timeout_ms": 2000,
    "delay_after_click_ms": 500,
    "screenshot_timeout_ms": 15_000,
    # Authentication
    "auth_timeout_ms": 10_000,
    "auth_poll_interval_ms": 250,
    "login_affordance_settle_ms": 1000,
    # Deep exploration
    "deep_idle_ms": 1000,
    "scroll_settle_ms": 500,
    # Accessibility summaries for the first N pages only
    "accessibility_page_limit": 5,
    # Browser
    "headless": True,
    "viewport_width": 1280,
    "viewport_height": 800,
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 "
        "UX-Agent/1.0"
    ),
    # Artifacts
    "artifacts_root": "artifacts",
    "output_json": None,
}


@dataclass
class ExplorerRunConfig:
    """
    Unified configuration consumed by every explorer subsystem.

    Populate via:
      - ``ExplorerRunConfig()``                 → all defaults
      - ``ExplorerRunConfig(max_pages=10)``     → override one value
      - ``ExplorerRunConfig.from_cli_args(ns)`` → from argparse Namespace
    """

    # ---- Session budgets ----
    max_pages: int = _DEFAULTS["max_pages"]
    max_duration_ms: int = _DEFAULTS["max_duration_ms"]
    min_duration_ms: int = _DEFAULTS["min_duration_ms"]
    max_interactions_per_page: int = _DEFAULTS["max_interactions_per_page"]

    # ---- Navigation ----
    start_timeout_ms: int = _DEFAULTS["start_timeout_ms"]
    navigation_timeout_ms: int = _DEFAULTS["navigation_timeout_ms"]
    settle_after_navigation_ms: int = _DEFAULTS["settle_after_navigation_ms"]

    # ---- Interaction ----
    click_timeout_ms: int = _DEFAULTS["click_timeout_ms"]
    fill_timeout_ms: int = _DEFAULTS["fill_timeout_ms"]
    delay_after_click_ms: int = _DEFAULTS["delay_after_click_ms"]
    screenshot_timeout_ms: int = _DEFAULTS["screenshot_timeout_ms"]

    # ---- Authentication ----
    auth_timeout_ms: int = _DEFAULTS["auth_timeout_ms"]
    auth_poll_interval_ms: int = _DEFAULTS["auth_poll_interval_ms"]
    login_affordance_settle_ms: int = _DEFAULTS["login_affordance_settle_ms"]

    # ---- Deep exploration ----
    deep_idle_ms: int = _DEFAULTS["deep_idle_ms"]
    scroll_settle_ms: int = _DEFAULTS["scroll_settle_ms"]

    # ---- Accessibility ----
    accessibility_page_limit: int = _DEFAULTS["accessibility_page_limit"]

    # ---- Browser ----
    headless: bool = _DEFAULTS["headless"]
    viewport_width: int = _DEFAULTS["viewport_width"]
    viewport_height: int = _DEFAULTS["viewport_height"]
    user_agent: str = _DEFAULTS["user_agent"]

    # ---- Artifacts ----
    artifacts_root: str = _DEFAULTS["artifacts_root"]
    output_json: Optional[str] = _DEFAULTS["output_json"]

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_cli_args(cls, args) -> "ExplorerRunConfig":
        """Build config from an argparse Namespace (``__main__.py``).

        Duration flags are given in seconds on the command line.
        """
        max_duration = getattr(args, "max_duration", None)
        min_duration = getattr(args, "min_duration", None)
        pages = getattr(args, "pages", None)
        max_interactions = getattr(args, "max_interactions", None)
        return cls(
            max_pages=pages if pages is not None else _DEFAULTS["max_pages"],
            max_duration_ms=(
                int(max_duration * 1000) if max_duration is not None
                else _DEFAULTS["max_duration_ms"]
            ),
            min_duration_ms=(
                int(min_duration * 1000) if min_duration is not None
                else _DEFAULTS["min_duration_ms"]
            ),
            max_interactions_per_page=(
                max_interactions if max_interactions is not None
                else _DEFAULTS["max_interactions_per_page"]
            ),
            headless=not getattr(args, "headed", False),
            artifacts_root=getattr(args, "artifacts_dir", None) or _DEFAULTS["artifacts_root"],
            output_json=getattr(args, "output_json", None),
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self, url: str) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("EXPLORATION RUN CONFIG")
        logger.info("=" * 60)
        logger.info(f"  URL:              {url}")
        logger.info(f"  Max Pages:        {self.max_pages}")
        logger.info(f"  Max Duration:     {self.max_duration_ms / 1000:.1f}s")
        logger.info(f"  Min Duration:     {self.min_duration_ms / 1000:.1f}s")
        logger.info(f"  Max Interactions: {self.max_interactions_per_page} per page")
        logger.info(f"  Headless:         {self.headless}")
        logger.info(f"  Artifacts Root:   {self.artifacts_root}")
        logger.info("=" * 60)
