"""AnalysisJobDAO — analysis_jobs table operations."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.dao.base import BaseDAO
from gitsummary.models.analysis_job import AnalysisJob


class AnalysisJobDAO(BaseDAO[AnalysisJob]):
    model = AnalysisJob

    async def get_for_update(self, session: AsyncSession, pk: uuid.UUID) -> AnalysisJob | None:
        """Load a job with a row lock so concurrent progress callbacks serialize."""
        self._require_pk(pk)
        stmt = select(AnalysisJob).where(AnalysisJob.id == pk).with_for_update()
        result = await session.execute(stmt)
        return result.scalars().first()
