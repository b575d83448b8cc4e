"""RepositoryDAO — repositories table operations."""

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.dao.base import BaseDAO
from gitsummary.models.repository import Repository


class RepositoryDAO(BaseDAO[Repository]):
    model = Repository

    async def names_by_ids(
        self, session: AsyncSession, repository_ids: set[uuid.UUID]
    ) -> dict[uuid.UUID, str]:
        """Batch-fetch repository names by IDs."""
        if not repository_ids:
            return {}
        stmt = select(Repository.id, Repository.name).where(Repository.id.in_(repository_ids))
        rows = await session.execute(stmt)
        return {row.id: row.name for row in rows}

    async def touch_last_sync(self, session: AsyncSession, pk: uuid.UUID, at: datetime) -> None:
        """Record a successful sync (JobCoordinator on COMPLETED)."""
        self._require_pk(pk)
        stmt = update(Repository).where(Repository.id == pk).values(last_sync_at=at)
        await session.execute(stmt)
