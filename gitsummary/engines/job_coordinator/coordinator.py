"""JobCoordinator — persists ingestion jobs and fires the extraction dispatch."""

from __future__ import annotations

import asyncio
import uuid
from datetime import date

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gitsummary.engines.job_coordinator.dispatcher import DispatchPayload, ExtractionDispatcher
from gitsummary.models.analysis_job import AnalysisJob
from gitsummary.services.analysis_job_service import AnalysisJobService
from gitsummary.services.repository_service import RepositoryService

log = structlog.get_logger("gitsummary.engine.jobs")

LIST_LIMIT_DEFAULT = 20
LIST_LIMIT_MAX = 100


class JobCoordinator:
    """Create jobs and hand them to the extraction service without waiting.

    The extraction service reports progress back through
    :meth:`AnalysisJobService.report_progress`; callers observe the job
    by polling :meth:`get_status`.
    """

    def __init__(
        self,
        job_service: AnalysisJobService,
        repository_service: RepositoryService,
        dispatcher: ExtractionDispatcher,
    ) -> None:
        self._job_service = job_service
        self._repository_service = repository_service
        self._dispatcher = dispatcher
        self._pending: set[asyncio.Task[None]] = set()

    async def submit(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository_id: uuid.UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        author_filter: str | list[str] | None = None,
        all_branches: bool = False,
    ) -> AnalysisJob:
        """Persist a PENDING job, commit it, then dispatch in the background.

        The job row is committed before the dispatch starts so that an early
        progress callback always finds it.
        """
        async with session_factory() as session:
            async with session.begin():
                job = await self._job_service.create(
                    session,
                    repository_id,
                    start_date=start_date,
                    end_date=end_date,
                    author_filter=author_filter,
                    all_branches=all_branches,
                )
                target = await self._repository_service.get_target(session, repository_id)

        payload = DispatchPayload(
            job_id=job.id,
            repo_url=target.repository.url,
            branch=target.repository.branch,
            credential_token=target.credential_token,
            start_date=job.start_date,
            end_date=job.end_date,
            author_filter=list(job.author_filter or []),
            all_branches=job.all_branches,
        )
        task = asyncio.create_task(self._dispatch(payload), name=f"dispatch-{job.id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        log.info("jobs.submitted", job_id=str(job.id), repository_id=str(repository_id))
        return job

    async def _dispatch(self, payload: DispatchPayload) -> None:
        try:
            await self._dispatcher.dispatch(payload)
        except Exception:
            # Job status stays untouched; the extraction service never saw it.
            log.exception("dispatch.failed", job_id=str(payload.job_id))

    async def get_status(self, session: AsyncSession, job_id: uuid.UUID) -> AnalysisJob:
        return await self._job_service.get(session, job_id)

    async def list_jobs(
        self, session: AsyncSession, limit: int = LIST_LIMIT_DEFAULT
    ) -> list[AnalysisJob]:
        limit = max(1, min(limit, LIST_LIMIT_MAX))
        return await self._job_service.list(session, limit)

    async def wait_dispatched(self) -> None:
        """Wait for in-flight dispatches (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
