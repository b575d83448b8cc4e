"""Tests for the API layer.

Services and engines are mocked to isolate the HTTP surface from the database.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from gitsummary.api import deps
from gitsummary.dao.base import Page
from gitsummary.engines.report.compiler import CompileResult, FileDescriptor
from gitsummary.engines.summarizer.runner import BatchResult
from gitsummary.models.analysis_job import AnalysisJob
from gitsummary.models.commit import Commit
from gitsummary.models.export_job import ExportJob
from gitsummary.services import (
    ExternalServiceError,
    NotFoundError,
    ReportSerializationError,
    ValidationError,
)
from gitsummary.services.analysis_job_service import IngestResult

NOW = datetime(2024, 2, 1, 12, 0, 0, tzinfo=timezone.utc)
REPO_ID = uuid.uuid4()


def _job(job_id: uuid.UUID | None = None, **overrides) -> AnalysisJob:
    values = {
        "id": job_id or uuid.uuid4(),
        "repository_id": REPO_ID,
        "status": "PENDING",
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 1, 31),
        "author_filter": ["a@x.com"],
        "all_branches": False,
        "total_commits": None,
        "processed_commits": 0,
        "error": None,
        "created_at": NOW,
        "completed_at": None,
    }
    values.update(overrides)
    return AnalysisJob(**values)


def _commit(sha: str = "aaa1111") -> Commit:
    return Commit(
        id=uuid.uuid4(),
        repository_id=REPO_ID,
        sha=sha,
        author_name="Alice",
        author_email="a@x.com",
        commit_date=NOW,
        message="PROJ-1 fix",
        message_title="PROJ-1 fix",
        files_changed=1,
        changed_paths=["README.md"],
        summary=None,
        summary_status="PENDING",
        jira_key="PROJ-1",
        jira_url="https://jira.example.com/browse/PROJ-1",
        created_at=NOW,
    )


@pytest.fixture
def app():
    """Create a test app with mocked session and engines (no real DB)."""
    mock_session = AsyncMock()

    from fastapi import FastAPI

    from gitsummary.api.errors import register_error_handlers
    from gitsummary.api.routers import authors, commits, exports, jobs, summaries

    application = FastAPI()
    register_error_handlers(application)
    application.include_router(jobs.router, prefix="/api/v1/jobs")
    application.include_router(commits.router, prefix="/api/v1/commits")
    application.include_router(authors.router, prefix="/api/v1/authors")
    application.include_router(summaries.router, prefix="/api/v1/summaries")
    application.include_router(exports.router, prefix="/api/v1/exports")

    async def _mock_session():
        yield mock_session

    application.dependency_overrides[deps.get_session] = _mock_session
    application.dependency_overrides[deps.get_session_factory] = lambda: MagicMock()
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestJobs:
    async def test_submit_returns_202(self, app, client):
        job = _job()
        coordinator = AsyncMock()
        coordinator.submit = AsyncMock(return_value=job)
        app.dependency_overrides[deps.get_job_coordinator] = lambda: coordinator

        resp = await client.post(
            "/api/v1/jobs",
            json={
                "repository_id": str(REPO_ID),
                "start_date": "2024-01-01",
                "end_date": "2024-01-31",
                "author_filter": "a@x.com",
            },
        )

        assert resp.status_code == 202
        assert resp.json()["id"] == str(job.id)
        assert resp.json()["status"] == "PENDING"
        kwargs = coordinator.submit.await_args.kwargs
        assert kwargs["start_date"] == date(2024, 1, 1)
        assert kwargs["author_filter"] == "a@x.com"

    async def test_submit_unknown_repository(self, app, client):
        coordinator = AsyncMock()
        coordinator.submit = AsyncMock(side_effect=NotFoundError("repository not found"))
        app.dependency_overrides[deps.get_job_coordinator] = lambda: coordinator

        resp = await client.post("/api/v1/jobs", json={"repository_id": str(uuid.uuid4())})

        assert resp.status_code == 404
        assert resp.json()["detail"] == "repository not found"

    async def test_submit_invalid_filter_reports_field(self, app, client):
        coordinator = AsyncMock()
        coordinator.submit = AsyncMock(
            side_effect=ValidationError("invalid author email: 'nope'", field="author_filter")
        )
        app.dependency_overrides[deps.get_job_coordinator] = lambda: coordinator

        resp = await client.post(
            "/api/v1/jobs", json={"repository_id": str(REPO_ID), "author_filter": "nope"}
        )

        assert resp.status_code == 422
        assert resp.json()["field"] == "author_filter"

    async def test_submit_malformed_body(self, client):
        resp = await client.post("/api/v1/jobs", json={"repository_id": "not-a-uuid"})
        assert resp.status_code == 422
        assert resp.json()["field"] == "repository_id"

    async def test_get_and_list(self, app, client):
        job = _job(status="PARSING", total_commits=10, processed_commits=4)
        coordinator = AsyncMock()
        coordinator.get_status = AsyncMock(return_value=job)
        coordinator.list_jobs = AsyncMock(return_value=[job])
        app.dependency_overrides[deps.get_job_coordinator] = lambda: coordinator

        resp = await client.get(f"/api/v1/jobs/{job.id}")
        assert resp.status_code == 200
        assert resp.json()["processed_commits"] == 4

        resp = await client.get("/api/v1/jobs", params={"limit": 5})
        assert resp.status_code == 200
        assert len(resp.json()) == 1
        assert coordinator.list_jobs.await_args.args[1] == 5

    async def test_list_limit_bounds(self, client):
        resp = await client.get("/api/v1/jobs", params={"limit": 1000})
        assert resp.status_code == 422

    async def test_get_missing_job(self, app, client):
        coordinator = AsyncMock()
        coordinator.get_status = AsyncMock(side_effect=NotFoundError("job not found"))
        app.dependency_overrides[deps.get_job_coordinator] = lambda: coordinator

        resp = await client.get(f"/api/v1/jobs/{uuid.uuid4()}")
        assert resp.status_code == 404

    async def test_progress_completed_wakes_summarizer(self, app, client, monkeypatch):
        job = _job(status="COMPLETED", total_commits=2, processed_commits=2, completed_at=NOW)
        svc = AsyncMock()
        svc.report_progress = AsyncMock(return_value=job)
        app.dependency_overrides[deps.get_analysis_job_service] = lambda: svc
        wake = MagicMock(return_value=True)
        monkeypatch.setattr("gitsummary.api.routers.jobs.wake_summarizer", wake)

        resp = await client.post(
            f"/api/v1/jobs/{job.id}/progress",
            json={"status": "completed", "processed_commits": 2},
        )

        assert resp.status_code == 200
        assert svc.report_progress.await_args.kwargs["status"] == "COMPLETED"
        wake.assert_called_once()

    async def test_progress_invalid_transition(self, app, client):
        svc = AsyncMock()
        svc.report_progress = AsyncMock(
            side_effect=ValidationError("invalid transition PENDING -> PARSING", field="status")
        )
        app.dependency_overrides[deps.get_analysis_job_service] = lambda: svc

        resp = await client.post(
            f"/api/v1/jobs/{uuid.uuid4()}/progress", json={"status": "PARSING"}
        )

        assert resp.status_code == 422
        assert resp.json()["field"] == "status"

    async def test_ingest_commits(self, app, client):
        svc = AsyncMock()
        svc.ingest_commits = AsyncMock(return_value=IngestResult(inserted=1, skipped=1))
        app.dependency_overrides[deps.get_analysis_job_service] = lambda: svc
        commit = {
            "sha": " aaa1111 ",
            "author_name": "Alice",
            "author_email": "a@x.com",
            "commit_date": "2024-01-05T10:00:00Z",
            "message": "fix",
            "changed_paths": ["README.md"],
        }

        resp = await client.post(
            f"/api/v1/jobs/{uuid.uuid4()}/commits", json={"commits": [commit, commit]}
        )

        assert resp.status_code == 200
        assert resp.json() == {"inserted": 1, "skipped": 1}
        records = svc.ingest_commits.await_args.args[2]
        assert records[0].sha == "aaa1111"
        assert records[0].commit_date.tzinfo is not None


# ---------------------------------------------------------------------------
# Commits / authors
# ---------------------------------------------------------------------------


class TestCommits:
    async def test_list_with_filters(self, app, client):
        svc = AsyncMock()
        svc.query = AsyncMock(return_value=Page(data=[_commit()], total=1, page=1, page_size=50))
        app.dependency_overrides[deps.get_commit_service] = lambda: svc

        resp = await client.get(
            "/api/v1/commits",
            params=[
                ("repository_id", str(REPO_ID)),
                ("author_email", "a@x.com,b@x.com"),
                ("author_email", "c@x.com"),
                ("start_date", "2024-01-01"),
                ("summary_status", "pending"),
            ],
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["meta"] == {
            "total": 1,
            "page": 1,
            "limit": 50,
            "total_pages": 1,
            "has_more": False,
        }
        assert body["data"][0]["jira_key"] == "PROJ-1"
        flt = svc.query.await_args.args[1]
        assert flt.author_emails == ["a@x.com", "b@x.com", "c@x.com"]
        assert flt.summary_status == "PENDING"
        assert flt.date_range.start == date(2024, 1, 1)

    async def test_summary_status_counts(self, app, client):
        svc = AsyncMock()
        svc.summary_status_counts = AsyncMock(
            return_value={"pending": 3, "processing": 0, "completed": 5, "failed": 1, "total": 9}
        )
        app.dependency_overrides[deps.get_commit_service] = lambda: svc

        resp = await client.get("/api/v1/commits/summary-status")

        assert resp.status_code == 200
        assert resp.json()["total"] == 9

    async def test_authors(self, app, client):
        svc = AsyncMock()
        svc.list_authors = AsyncMock(
            return_value=[{"email": "a@x.com", "name": "Alice", "commit_count": 7}]
        )
        app.dependency_overrides[deps.get_commit_service] = lambda: svc

        resp = await client.get("/api/v1/authors", params={"repository_id": str(REPO_ID)})

        assert resp.status_code == 200
        assert resp.json() == [{"email": "a@x.com", "name": "Alice", "commit_count": 7}]
        assert svc.list_authors.await_args.args[1] == REPO_ID


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


class TestSummaries:
    async def test_run_batch(self, app, client):
        runner = AsyncMock()
        runner.run_batch = AsyncMock(return_value=BatchResult(success=2, failed=1))
        app.dependency_overrides[deps.get_summarizer_runner] = lambda: runner

        resp = await client.post("/api/v1/summaries/batch", json={"repository_id": str(REPO_ID)})

        assert resp.status_code == 200
        assert resp.json() == {"success": 2, "failed": 1, "rate_limited": False}
        assert runner.run_batch.await_args.kwargs["repository_id"] == REPO_ID

    async def test_run_batch_without_body(self, app, client):
        runner = AsyncMock()
        runner.run_batch = AsyncMock(return_value=BatchResult(rate_limited=True))
        app.dependency_overrides[deps.get_summarizer_runner] = lambda: runner

        resp = await client.post("/api/v1/summaries/batch")

        assert resp.status_code == 200
        assert resp.json()["rate_limited"] is True
        assert runner.run_batch.await_args.kwargs["repository_id"] is None


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------


class TestExports:
    async def test_create_export(self, app, client):
        export_id = uuid.uuid4()
        compiler = AsyncMock()
        compiler.compile = AsyncMock(
            return_value=CompileResult(
                export_id=export_id,
                files=[FileDescriptor("r.xlsx", f"{export_id}/r.xlsx", 2048, REPO_ID)],
                total_commits=3,
            )
        )
        app.dependency_overrides[deps.get_report_compiler] = lambda: compiler

        resp = await client.post(
            "/api/v1/exports",
            json={
                "repository_ids": [str(REPO_ID)],
                "author_emails": "a@x.com, b@x.com",
                "ai_narrative": False,
            },
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["export_id"] == str(export_id)
        assert body["files"][0]["size"] == 2048
        flt = compiler.compile.await_args.args[1]
        assert flt.author_emails == ["a@x.com", "b@x.com"]
        assert compiler.compile.await_args.kwargs["ai_narrative"] is False

    async def test_no_matches(self, app, client):
        compiler = AsyncMock()
        compiler.compile = AsyncMock(side_effect=NotFoundError("no commits matched"))
        app.dependency_overrides[deps.get_report_compiler] = lambda: compiler

        resp = await client.post("/api/v1/exports", json={})
        assert resp.status_code == 404

    async def test_serialization_failure(self, app, client):
        compiler = AsyncMock()
        compiler.compile = AsyncMock(side_effect=ReportSerializationError("export failed"))
        app.dependency_overrides[deps.get_report_compiler] = lambda: compiler

        resp = await client.post("/api/v1/exports", json={})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "export failed"

    async def test_list_exports(self, app, client):
        record = ExportJob(
            id=uuid.uuid4(),
            repository_ids=[str(REPO_ID)],
            author_emails=[],
            start_date=None,
            end_date=None,
            status="COMPLETED",
            files=[{"name": "r.xlsx", "key": "k/r.xlsx", "size": 1, "repository_id": str(REPO_ID)}],
            row_count=1,
            created_at=NOW,
            completed_at=NOW,
        )
        compiler = AsyncMock()
        compiler.list_exports = AsyncMock(return_value=[record])
        app.dependency_overrides[deps.get_report_compiler] = lambda: compiler

        resp = await client.get("/api/v1/exports")

        assert resp.status_code == 200
        assert resp.json()[0]["files"][0]["name"] == "r.xlsx"


# ---------------------------------------------------------------------------
# Error mapping / app factory
# ---------------------------------------------------------------------------


class TestErrors:
    async def test_external_service_error_is_502(self, app, client):
        coordinator = AsyncMock()
        coordinator.submit = AsyncMock(side_effect=ExternalServiceError("extraction down"))
        app.dependency_overrides[deps.get_job_coordinator] = lambda: coordinator

        resp = await client.post("/api/v1/jobs", json={"repository_id": str(REPO_ID)})

        assert resp.status_code == 502


class TestAppFactory:
    async def test_health_and_request_id(self):
        from gitsummary.api import create_app

        application = create_app()
        transport = ASGITransport(app=application)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
        uuid.UUID(resp.headers["x-request-id"])
