"""
Artifact Store
==============
One directory per job identifier, holding:

- ``screenshot_<pageIndex>.png``   full-page capture of each visited page
- ``interaction_<epochMillis>.png`` capture after each click
- exactly one recording (``*.webm``) with a browser-assigned name,
  present only after the recording context has been closed

Only file *names* travel in the result record; readers join them with
the job directory themselves.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

VIDEO_EXTENSION = ".webm"


class ArtifactStore:
    """File naming and discovery for one job's artifact directory."""

    def __init__(self, root: str, job_id: str):
        self.directory = Path(root) / job_id
        self._last_interaction_ms = 0

    def ensure(self) -> Path:
        """Create the job directory if missing and return it."""
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def path_for(self, name: str) -> Path:
        return self.directory / name

    @staticmethod
    def page_screenshot_name(page_index: int) -> str:
        return f"screenshot_{page_index}.png"

    def interaction_screenshot_name(self) -> str:
        """Timestamp-based name, bumped so two captures never collide."""
        now_ms = int(time.time() * 1000)
        if now_ms <= self._last_interaction_ms:
            now_ms = self._last_interaction_ms + 1
        self._last_interaction_ms = now_ms
        return f"interaction_{now_ms}.png"

    def find_video(self) -> Optional[str]:
        """Return the name of the finalized recording, if any."""
        if not self.directory.exists():
            return None
        videos = sorted(
            p.name for p in self.directory.iterdir()
            if p.is_file() and p.suffix == VIDEO_EXTENSION
        )
        if len(videos) > 1:
            logger.warning(
                f"[ARTIFACTS] {len(videos)} recordings in {self.directory} — using {videos[0]}"
            )
        return videos[0] if videos else None
