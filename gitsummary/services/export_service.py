"""ExportService — export_jobs audit records."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.dao.export_job_dao import ExportJobDAO
from gitsummary.models.export_job import ExportJob


class ExportService:
    def __init__(self, export_job_dao: ExportJobDAO) -> None:
        self._export_job_dao = export_job_dao

    async def record(self, session: AsyncSession, **values) -> ExportJob:
        """Persist a completed export. Records are never updated afterwards."""
        return await self._export_job_dao.create(session, **values)

    async def list(self, session: AsyncSession, limit: int = 20) -> list[ExportJob]:
        return await self._export_job_dao.list_recent(session, limit)
