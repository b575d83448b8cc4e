"""Authors router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.api.deps import get_commit_service, get_session
from gitsummary.api.schemas.commit import AuthorResponse
from gitsummary.services.commit_service import CommitService

router = APIRouter()


@router.get("", response_model=list[AuthorResponse])
async def list_authors(
    repository_id: uuid.UUID | None = Query(None),
    session: AsyncSession = Depends(get_session),
    svc: CommitService = Depends(get_commit_service),
) -> list[AuthorResponse]:
    authors = await svc.list_authors(session, repository_id)
    return [AuthorResponse(**a) for a in authors]
