"""AnalysisJobService — ingestion-job lifecycle bookkeeping."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.dao.analysis_job_dao import AnalysisJobDAO
from gitsummary.models.analysis_job import (
    JOB_CLONING,
    JOB_COMPLETED,
    JOB_FAILED,
    JOB_PARSING,
    JOB_PENDING,
    JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    AnalysisJob,
)
from gitsummary.services import NotFoundError, ValidationError
from gitsummary.services.commit_service import CommitRecord, CommitService
from gitsummary.services.repository_service import RepositoryService

log = structlog.get_logger("gitsummary.jobs")

_EMAIL_RE = re.compile(r"^[^@\s,]+@[^@\s,]+$")

# Status changes the extraction service may report. Same-status updates
# (progress only) are always allowed for non-terminal jobs.
_TRANSITIONS: dict[str, frozenset[str]] = {
    JOB_PENDING: frozenset({JOB_CLONING}),
    JOB_CLONING: frozenset({JOB_PARSING, JOB_FAILED}),
    JOB_PARSING: frozenset({JOB_COMPLETED, JOB_FAILED}),
}


def normalize_author_filter(value: str | list[str] | None) -> list[str] | None:
    """Accept a comma-separated string or a list; return deduplicated emails.

    Raises :class:`ValidationError` on a malformed address.
    """
    if value is None:
        return None
    parts = value.split(",") if isinstance(value, str) else value
    emails: list[str] = []
    for raw in parts:
        email = raw.strip()
        if not email:
            continue
        if not _EMAIL_RE.match(email):
            raise ValidationError(f"invalid author email: {email!r}", field="author_filter")
        if email not in emails:
            emails.append(email)
    return emails or None


@dataclass
class IngestResult:
    inserted: int = 0
    skipped: int = 0


class AnalysisJobService:
    """Stateless service for analysis job creation, progress and reads."""

    def __init__(
        self,
        job_dao: AnalysisJobDAO,
        repository_service: RepositoryService,
        commit_service: CommitService,
    ) -> None:
        self._job_dao = job_dao
        self._repository_service = repository_service
        self._commit_service = commit_service

    # ── create / read ────────────────────────────────────────────────────

    async def create(
        self,
        session: AsyncSession,
        repository_id: uuid.UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        author_filter: str | list[str] | None = None,
        all_branches: bool = False,
    ) -> AnalysisJob:
        """Validate inputs and persist a PENDING job.

        Raises :class:`NotFoundError` for an unknown repository and
        :class:`ValidationError` for malformed filters.
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")
        emails = normalize_author_filter(author_filter)
        await self._repository_service.get(session, repository_id)

        return await self._job_dao.create(
            session,
            repository_id=repository_id,
            status=JOB_PENDING,
            start_date=start_date,
            end_date=end_date,
            author_filter=emails,
            all_branches=all_branches,
        )

    async def get(self, session: AsyncSession, job_id: uuid.UUID) -> AnalysisJob:
        """Raises :class:`NotFoundError` if not found."""
        job = await self._job_dao.get_by_id(session, job_id)
        if job is None:
            raise NotFoundError("job not found")
        return job

    async def list(self, session: AsyncSession, limit: int = 20) -> list[AnalysisJob]:
        """Most recent jobs first."""
        return await self._job_dao.list_recent(session, limit)

    # ── extraction service callbacks ─────────────────────────────────────

    async def report_progress(
        self,
        session: AsyncSession,
        job_id: uuid.UUID,
        *,
        status: str | None = None,
        total_commits: int | None = None,
        processed_commits: int | None = None,
        error: str | None = None,
    ) -> AnalysisJob:
        """Apply a progress report from the extraction service.

        Enforces the job state machine, keeps ``processed_commits`` monotonic
        and bounded by ``total_commits``, and freezes terminal jobs.
        """
        job = await self._job_dao.get_for_update(session, job_id)
        if job is None:
            raise NotFoundError("job not found")
        if job.status in TERMINAL_JOB_STATUSES:
            raise ValidationError(f"job is already {job.status}", field="status")

        values: dict[str, Any] = {}
        new_status = status or job.status
        if new_status not in JOB_STATUSES:
            raise ValidationError(f"unknown job status: {new_status}", field="status")
        if new_status != job.status:
            if new_status not in _TRANSITIONS.get(job.status, frozenset()):
                raise ValidationError(
                    f"invalid transition {job.status} -> {new_status}", field="status"
                )
            values["status"] = new_status

        if new_status == JOB_FAILED:
            if not error:
                raise ValidationError("a FAILED report must carry an error", field="error")
            values["error"] = error
        elif error:
            raise ValidationError("error is only accepted with status FAILED", field="error")

        total = job.total_commits
        if total_commits is not None:
            if total_commits < 0:
                raise ValidationError("total_commits must be >= 0", field="total_commits")
            if total is not None and total_commits != total:
                raise ValidationError("total_commits is already set", field="total_commits")
            if total_commits < job.processed_commits:
                raise ValidationError(
                    "total_commits is below processed_commits", field="total_commits"
                )
            total = total_commits
            values["total_commits"] = total_commits

        if processed_commits is not None:
            if processed_commits < 0:
                raise ValidationError("processed_commits must be >= 0", field="processed_commits")
            if total is not None and processed_commits > total:
                raise ValidationError(
                    "processed_commits exceeds total_commits", field="processed_commits"
                )
            if processed_commits < job.processed_commits:
                log.warning(
                    "jobs.stale_progress_ignored",
                    job_id=str(job_id),
                    current=job.processed_commits,
                    reported=processed_commits,
                )
            else:
                values["processed_commits"] = processed_commits

        if new_status in TERMINAL_JOB_STATUSES and "status" in values:
            now = datetime.now(timezone.utc)
            values["completed_at"] = now
            if new_status == JOB_COMPLETED:
                await self._repository_service.mark_synced(session, job.repository_id, now)

        updated = await self._job_dao.update(session, job_id, **values) if values else job
        if "status" in values:
            log.info(
                "jobs.transition",
                job_id=str(job_id),
                status=new_status,
                processed=updated.processed_commits,
                total=updated.total_commits,
            )
        return updated

    async def ingest_commits(
        self,
        session: AsyncSession,
        job_id: uuid.UUID,
        records: list[CommitRecord],
    ) -> IngestResult:
        """Upsert commits observed by the extraction run for *job_id*.

        Each record is inserted independently; duplicates count as skipped.
        """
        job = await self.get(session, job_id)
        if job.status in TERMINAL_JOB_STATUSES:
            raise ValidationError(f"job is already {job.status}", field="status")

        result = IngestResult()
        for record in records:
            outcome = await self._commit_service.upsert(session, job.repository_id, record)
            if outcome.inserted:
                result.inserted += 1
            else:
                result.skipped += 1
        log.info(
            "jobs.commits_ingested",
            job_id=str(job_id),
            inserted=result.inserted,
            skipped=result.skipped,
        )
        return result
