"""
Tests for the job runner, status store and job record loading.
"""

import asyncio
import json

import pytest

from explorer.auth import Credentials
from explorer.jobs import Job, JobRunner, JobStatus, JsonStatusStore, load_job
from explorer.models import ExplorationResult

SECRET = "s3cr3t-Pa55"


class StubSession:
    """Session double returning a canned result."""
    error = None
    gate = None

    def __init__(self, job_id, config):
        self.job_id = job_id

    async def run(self, url, credentials=None):
        if self.gate is not None:
            await self.gate.wait()
        result = ExplorationResult(url=url, pages_visited=[url], screenshots=["screenshot_0.png"])
        result.error = self.error
        return result


def _recorder():
    seen = []

    def sink(job):
        seen.append(job.status)

    return seen, sink


class TestJobRunner:

    @pytest.mark.asyncio
    async def test_status_lifecycle(self):
        seen, sink = _recorder()
        runner = JobRunner(on_status=sink, session_factory=StubSession)
        job = Job(id="j1", url="https://site.test/")

        assert await runner.process(job)

        assert seen == [JobStatus.NAVIGATING, JobStatus.ANALYZING, JobStatus.COMPLETED]
        assert job.results["pagesVisited"] == ["https://site.test/"]

    @pytest.mark.asyncio
    async def test_session_error_marks_failed(self):
        class FailingSession(StubSession):
            error = "Could not load start URL"

        seen, sink = _recorder()
        runner = JobRunner(on_status=sink, session_factory=FailingSession)
        job = Job(id="j1", url="https://site.test/")

        await runner.process(job)

        assert seen == [JobStatus.NAVIGATING, JobStatus.FAILED]
        assert job.error == "Could not load start URL"
        assert job.results["error"] == "Could not load start URL"

    @pytest.mark.asyncio
    async def test_analyzer_report(self):
        async def analyzer(result):
            return {"summary": f"{len(result.pages_visited)} page(s)"}

        runner = JobRunner(analyzer=analyzer, session_factory=StubSession)
        job = Job(id="j1", url="https://site.test/")

        await runner.process(job)

        assert job.status == JobStatus.COMPLETED
        assert job.report == {"summary": "1 page(s)"}

    @pytest.mark.asyncio
    async def test_analyzer_failure_marks_failed(self):
        def analyzer(result):
            raise ValueError("model unavailable")

        runner = JobRunner(analyzer=analyzer, session_factory=StubSession)
        job = Job(id="j1", url="https://site.test/")

        await runner.process(job)

        assert job.status == JobStatus.FAILED
        assert "model unavailable" in job.error

    @pytest.mark.asyncio
    async def test_busy_runner_declines(self):
        class GatedSession(StubSession):
            gate = asyncio.Event()

        runner = JobRunner(session_factory=GatedSession)
        first = Job(id="first", url="https://site.test/")
        second = Job(id="second", url="https://site.test/")

        task = asyncio.create_task(runner.process(first))
        while not runner.busy:
            await asyncio.sleep(0)

        assert await runner.process(second) is False
        assert second.status == JobStatus.QUEUED

        GatedSession.gate.set()
        assert await task is True
        assert first.status == JobStatus.COMPLETED
        assert not runner.busy

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_abort(self):
        def sink(job):
            raise OSError("disk full")

        runner = JobRunner(on_status=sink, session_factory=StubSession)
        job = Job(id="j1", url="https://site.test/")

        await runner.process(job)
        assert job.status == JobStatus.COMPLETED


class TestJsonStatusStore:

    @pytest.mark.asyncio
    async def test_writes_job_file(self, tmp_path):
        store = JsonStatusStore(str(tmp_path))
        runner = JobRunner(on_status=store, session_factory=StubSession)
        job = Job(id="j1", url="https://site.test/", auth=Credentials("me@example.com", SECRET))

        await runner.process(job)

        data = store.load("j1")
        assert data["id"] == "j1"
        assert data["status"] == "completed"
        assert data["results"]["screenshots"] == ["screenshot_0.png"]
        assert "updatedAt" in data
        raw = (tmp_path / "j1" / "job.json").read_text(encoding="utf-8")
        assert SECRET not in raw
        assert "me@example.com" not in raw

    def test_queued_record_has_no_results(self, tmp_path):
        store = JsonStatusStore(str(tmp_path))
        store(Job(id="j2", url="https://site.test/"))
        assert store.load("j2") == {
            "id": "j2",
            "url": "https://site.test/",
            "status": "queued",
            "updatedAt": store.load("j2")["updatedAt"],
        }


class TestLoadJob:

    def test_inbound_record(self, tmp_path):
        path = tmp_path / "job.json"
        path.write_text(json.dumps({
            "url": "https://site.test/",
            "auth": {"email": "me@example.com", "password": SECRET},
        }), encoding="utf-8")

        job = load_job(str(path), job_id="job-7")

        assert job.id == "job-7"
        assert job.url == "https://site.test/"
        assert job.auth.password == SECRET
        assert job.status == JobStatus.QUEUED

    def test_generated_id(self, tmp_path):
        path = tmp_path / "job.json"
        path.write_text(json.dumps({"url": "https://site.test/"}), encoding="utf-8")
        job = load_job(str(path))
        assert job.id and job.auth is None

    def test_missing_url(self, tmp_path):
        path = tmp_path / "job.json"
        path.write_text(json.dumps({"auth": {}}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_job(str(path))

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "job.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError):
            load_job(str(path))
