"""Exports router — compile reports and list past exports."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.api.deps import get_report_compiler, get_session
from gitsummary.api.schemas.export import (
    ExportJobResponse,
    ExportRequest,
    ExportResponse,
    FileDescriptorResponse,
)
from gitsummary.core.filters import CommitFilter, DateRange
from gitsummary.engines.report.compiler import ReportCompiler

router = APIRouter()


@router.post("", response_model=ExportResponse, status_code=201)
async def create_export(
    body: ExportRequest,
    session: AsyncSession = Depends(get_session),
    compiler: ReportCompiler = Depends(get_report_compiler),
) -> ExportResponse:
    flt = CommitFilter(
        repository_ids=body.repository_ids,
        author_emails=body.author_emails,
        date_range=DateRange(body.start_date, body.end_date),
    )
    result = await compiler.compile(session, flt, ai_narrative=body.ai_narrative)
    return ExportResponse(
        export_id=result.export_id,
        files=[FileDescriptorResponse(**f.to_json()) for f in result.files],
        total_commits=result.total_commits,
    )


@router.get("", response_model=list[ExportJobResponse])
async def list_exports(
    limit: int = Query(20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
    compiler: ReportCompiler = Depends(get_report_compiler),
) -> list[ExportJobResponse]:
    exports = await compiler.list_exports(session, limit)
    return [ExportJobResponse.model_validate(e) for e in exports]
