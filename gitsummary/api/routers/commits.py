"""Commits router — filtered listing and summary status counts."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.api.deps import get_commit_service, get_session
from gitsummary.api.schemas.commit import CommitResponse, SummaryStatusResponse
from gitsummary.api.schemas.common import PageMeta, PaginatedResponse
from gitsummary.core.filters import CommitFilter, DateRange
from gitsummary.services.commit_service import CommitService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[CommitResponse])
async def list_commits(
    repository_id: uuid.UUID | None = Query(None),
    author_email: list[str] | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    summary_status: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
    svc: CommitService = Depends(get_commit_service),
) -> PaginatedResponse[CommitResponse]:
    emails = [e.strip() for raw in author_email or [] for e in raw.split(",") if e.strip()]
    flt = CommitFilter(
        repository_ids=[repository_id] if repository_id else [],
        author_emails=emails,
        date_range=DateRange(start_date, end_date),
        summary_status=summary_status.upper() if summary_status else None,
    )
    result = await svc.query(session, flt, page, limit)
    return PaginatedResponse(
        data=[CommitResponse.model_validate(c) for c in result.data],
        meta=PageMeta(
            total=result.total,
            page=result.page,
            limit=result.page_size,
            total_pages=result.total_pages,
            has_more=result.has_more,
        ),
    )


@router.get("/summary-status", response_model=SummaryStatusResponse)
async def summary_status(
    repository_id: uuid.UUID | None = Query(None),
    session: AsyncSession = Depends(get_session),
    svc: CommitService = Depends(get_commit_service),
) -> SummaryStatusResponse:
    counts = await svc.summary_status_counts(session, repository_id)
    return SummaryStatusResponse(**counts)
