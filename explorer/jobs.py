"""
Job Runner
==========
Glue between an inbound job record and one exploration session.

Status lifecycle reported to the sink::

    queued → navigating → analyzing → completed
                     └──────────┴────→ failed

At most one session runs at a time per runner: a ``process`` call made
while another job is in flight is declined and that job stays ``queued``.

``JsonStatusStore`` is the default sink; it writes
``<artifacts_root>/<job id>/job.json`` on every status change.  Credentials
are never part of what it writes.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .auth import Credentials
from .models import ExplorationResult
from .run_config import ExplorerRunConfig
from .session import ExplorationSession

logger = logging.getLogger(__name__)

JOB_FILE_NAME = "job.json"


class JobStatus(str, Enum):
    QUEUED = "queued"
    NAVIGATING = "navigating"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Job:
    """Inbound job record ``{url, auth?}`` plus its lifecycle state."""
    id: str
    url: str
    auth: Optional[Credentials] = None
    status: JobStatus = JobStatus.QUEUED
    results: Optional[Dict[str, Any]] = None
    report: Any = None
    error: Optional[str] = None
    updated_at: str = field(default_factory=_utc_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], job_id: Optional[str] = None) -> "Job":
        url = data.get("url")
        if not url or not isinstance(url, str):
            raise ValueError("Job record needs a 'url' string")
        return cls(
            id=job_id or data.get("id") or uuid.uuid4().hex[:12],
            url=url,
            auth=Credentials.from_mapping(data.get("auth")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "status": self.status.value,
            "updatedAt": self.updated_at,
        }
        if self.results is not None:
            data["results"] = self.results
        if self.report is not None:
            data["report"] = self.report
        if self.error:
            data["error"] = self.error
        return data


def load_job(path: str, job_id: Optional[str] = None) -> Job:
    """Read an inbound job record from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Job file {path} must contain a JSON object")
    return Job.from_dict(data, job_id=job_id)


class JsonStatusStore:
    """Status sink persisting each job state to ``<root>/<job id>/job.json``."""

    def __init__(self, root: str):
        self.root = Path(root)

    def path_for(self, job_id: str) -> Path:
        return self.root / job_id / JOB_FILE_NAME

    def __call__(self, job: Job) -> None:
        path = self.path_for(job.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(job.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp, path)

    def load(self, job_id: str) -> Dict[str, Any]:
        with open(self.path_for(job_id), "r", encoding="utf-8") as f:
            return json.load(f)


StatusSink = Callable[[Job], None]
Analyzer = Callable[[ExplorationResult], Any]


class JobRunner:
    """
    Runs jobs one at a time and reports their status.

    Usage::

        runner = JobRunner(config, analyzer=my_report_fn,
                           on_status=JsonStatusStore("artifacts"))
        accepted = await runner.process(job)
    """

    def __init__(
        self,
        config: ExplorerRunConfig = None,
        analyzer: Optional[Analyzer] = None,
        on_status: Optional[StatusSink] = None,
        session_factory: Callable[[str, ExplorerRunConfig], ExplorationSession] = ExplorationSession,
    ):
        self.config = config or ExplorerRunConfig()
        self.analyzer = analyzer
        self.on_status = on_status
        self.session_factory = session_factory
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def report_status(self, job: Job, status: JobStatus, error: Optional[str] = None) -> None:
        job.status = status
        job.updated_at = _utc_now()
        if error:
            job.error = error
        logger.info(f"[JOB] {job.id} → {status.value}")
        if self.on_status is not None:
            try:
                self.on_status(job)
            except Exception as e:
                logger.warning(f"[JOB] Status sink failed for {job.id}: {e}")

    async def process(self, job: Job) -> bool:
        """Run *job* to completion; False if declined because the runner is busy."""
        if self.busy:
            logger.info(f"[JOB] Runner busy — {job.id} stays queued")
            return False

        async with self._lock:
            self.report_status(job, JobStatus.NAVIGATING)
            session = self.session_factory(job.id, self.config)
            result = await session.run(job.url, job.auth)
            job.results = result.to_dict()

            if result.error:
                self.report_status(job, JobStatus.FAILED, error=result.error)
                return True

            self.report_status(job, JobStatus.ANALYZING)
            if self.analyzer is not None:
                try:
                    report = self.analyzer(result)
                    if inspect.isawaitable(report):
                        report = await report
                    job.report = report
                except Exception as e:
                    logger.error(f"[JOB] Analysis failed for {job.id}: {e}", exc_info=True)
                    self.report_status(job, JobStatus.FAILED, error=f"Analysis failed: {e}")
                    return True

            self.report_status(job, JobStatus.COMPLETED)
        return True
