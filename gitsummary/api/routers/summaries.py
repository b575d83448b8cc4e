"""Summaries router — run one summarization batch on demand."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gitsummary.api.deps import get_session_factory, get_summarizer_runner
from gitsummary.api.schemas.summary import BatchRequest, BatchResponse
from gitsummary.engines.summarizer.runner import SummarizerRunner

router = APIRouter()


@router.post("/batch", response_model=BatchResponse)
async def run_batch(
    body: BatchRequest | None = None,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    runner: SummarizerRunner = Depends(get_summarizer_runner),
) -> BatchResponse:
    repository_id = body.repository_id if body is not None else None
    result = await runner.run_batch(session_factory, repository_id=repository_id)
    return BatchResponse(
        success=result.success, failed=result.failed, rate_limited=result.rate_limited
    )
