"""
Exploration Data Model
======================
Structured record of everything a session observed.

``ExplorationResult`` is the aggregate handed to the analysis service and
the persistence layer.  ``to_dict()`` produces the outbound record with the
camel-cased keys downstream consumers read (``metaDescription``,
``videoPath``, ``consoleLogs``, ``actionLog``, ``pagesVisited`` ...).

Ordering matters: ``action_log`` and ``screenshots`` are appended in the
causal order of what happened in the browser and are never reordered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ActionType(str, Enum):
    """Kind of observable action recorded in the action log."""
    NAVIGATION = "navigation"
    CLICK = "click"
    INPUT = "input"
    KEYPRESS = "keypress"
    AUTH = "auth"
    SCREENSHOT = "screenshot"


class Phase(str, Enum):
    """Crawl phase — before or after login."""
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ActionLogEntry:
    """One immutable action-log record."""
    type: ActionType
    description: str
    selector: Optional[str] = None
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "type": self.type.value,
            "selector": self.selector,
            "description": self.description,
        }


@dataclass
class PageSnapshot:
    """Transient per-page capture, folded into the result right away."""
    url: str
    title: str = ""
    screenshot: Optional[str] = None
    accessibility: Optional[Dict[str, Any]] = None


@dataclass
class ExplorationResult:
    """Aggregate record for one exploration session."""
    url: str
    title: str = ""
    meta_description: str = ""
    screenshots: List[str] = field(default_factory=list)
    video_path: Optional[str] = None
    console_logs: List[Dict[str, str]] = field(default_factory=list)
    network_errors: List[Dict[str, Any]] = field(default_factory=list)
    pages_visited: List[str] = field(default_factory=list)
    action_log: List[ActionLogEntry] = field(default_factory=list)
    accessibility: List[Dict[str, Any]] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    # ── Mutators (single writer: the session and what it calls) ──────

    def log_action(
        self,
        action_type: ActionType,
        description: str,
        selector: Optional[str] = None,
    ) -> ActionLogEntry:
        """Append an entry to the action log and return it."""
        entry = ActionLogEntry(type=action_type, description=description, selector=selector)
        self.action_log.append(entry)
        return entry

    def add_page(self, snapshot: PageSnapshot) -> None:
        """Fold a page snapshot into the aggregate."""
        self.pages_visited.append(snapshot.url)
        if snapshot.screenshot:
            self.screenshots.append(snapshot.screenshot)
        if snapshot.accessibility:
            self.accessibility.append(snapshot.accessibility)
        if not self.title and snapshot.title:
            self.title = snapshot.title

    def actions_of(self, action_type: ActionType) -> List[ActionLogEntry]:
        return [e for e in self.action_log if e.type == action_type]

    @property
    def is_empty(self) -> bool:
        """True when nothing was captured (e.g. the start URL never loaded)."""
        return not self.pages_visited and not self.screenshots

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the outbound result record."""
        data: Dict[str, Any] = {
            "url": self.url,
            "title": self.title,
            "metaDescription": self.meta_description,
            "screenshots": list(self.screenshots),
            "videoPath": self.video_path,
            "consoleLogs": list(self.console_logs),
            "networkErrors": list(self.network_errors),
            "actionLog": [e.to_dict() for e in self.action_log],
            "pagesVisited": list(self.pages_visited),
            "stats": dict(self.stats),
        }
        if self.accessibility:
            data["accessibility"] = list(self.accessibility)
        if self.error:
            data["error"] = self.error
        return data
