"""Analysis jobs router — submission, status, and extraction callbacks."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gitsummary.api.deps import (
    get_analysis_job_service,
    get_job_coordinator,
    get_session,
    get_session_factory,
    wake_summarizer,
)
from gitsummary.api.schemas.job import (
    IngestCommitsRequest,
    IngestResponse,
    JobResponse,
    ProgressReportRequest,
    SubmitJobRequest,
    SubmitJobResponse,
)
from gitsummary.engines.job_coordinator.coordinator import JobCoordinator
from gitsummary.models.analysis_job import JOB_COMPLETED
from gitsummary.services.analysis_job_service import AnalysisJobService
from gitsummary.services.commit_service import CommitRecord

router = APIRouter()


@router.post("", response_model=SubmitJobResponse, status_code=202)
async def submit_job(
    body: SubmitJobRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    coordinator: JobCoordinator = Depends(get_job_coordinator),
) -> SubmitJobResponse:
    job = await coordinator.submit(
        session_factory,
        body.repository_id,
        start_date=body.start_date,
        end_date=body.end_date,
        author_filter=body.author_filter,
        all_branches=body.all_branches,
    )
    return SubmitJobResponse(id=job.id, status=job.status, message="analysis job submitted")


@router.get("", response_model=list[JobResponse])
async def list_jobs(
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    coordinator: JobCoordinator = Depends(get_job_coordinator),
) -> list[JobResponse]:
    jobs = await coordinator.list_jobs(session, limit)
    return [JobResponse.model_validate(j) for j in jobs]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    coordinator: JobCoordinator = Depends(get_job_coordinator),
) -> JobResponse:
    job = await coordinator.get_status(session, job_id)
    return JobResponse.model_validate(job)


@router.post("/{job_id}/progress", response_model=JobResponse)
async def report_progress(
    job_id: uuid.UUID,
    body: ProgressReportRequest,
    session: AsyncSession = Depends(get_session),
    svc: AnalysisJobService = Depends(get_analysis_job_service),
) -> JobResponse:
    job = await svc.report_progress(
        session,
        job_id,
        status=body.status,
        total_commits=body.total_commits,
        processed_commits=body.processed_commits,
        error=body.error,
    )
    if job.status == JOB_COMPLETED:
        wake_summarizer()
    return JobResponse.model_validate(job)


@router.post("/{job_id}/commits", response_model=IngestResponse)
async def ingest_commits(
    job_id: uuid.UUID,
    body: IngestCommitsRequest,
    session: AsyncSession = Depends(get_session),
    svc: AnalysisJobService = Depends(get_analysis_job_service),
) -> IngestResponse:
    records = [CommitRecord(**c.model_dump()) for c in body.commits]
    result = await svc.ingest_commits(session, job_id, records)
    return IngestResponse(inserted=result.inserted, skipped=result.skipped)
