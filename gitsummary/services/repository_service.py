"""RepositoryService — read access to registered repositories."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.dao.credential_dao import CredentialDAO
from gitsummary.dao.repository_dao import RepositoryDAO
from gitsummary.models.repository import Repository
from gitsummary.services import NotFoundError


@dataclass
class RepositoryTarget:
    """What the extraction service needs to reach a repository."""

    repository: Repository
    credential_token: str | None


class RepositoryService:
    """Repositories are managed elsewhere; this core reads them and stamps syncs."""

    def __init__(self, repository_dao: RepositoryDAO, credential_dao: CredentialDAO) -> None:
        self._repository_dao = repository_dao
        self._credential_dao = credential_dao

    async def get(self, session: AsyncSession, repository_id: uuid.UUID) -> Repository:
        """Raises :class:`NotFoundError` if the repository does not exist."""
        repo = await self._repository_dao.get_by_id(session, repository_id)
        if repo is None:
            raise NotFoundError("repository not found")
        return repo

    async def get_target(
        self, session: AsyncSession, repository_id: uuid.UUID
    ) -> RepositoryTarget:
        """Return the repository together with its access token (if any)."""
        repo = await self.get(session, repository_id)
        token = None
        if repo.credential_id is not None:
            credential = await self._credential_dao.get_by_id(session, repo.credential_id)
            token = credential.token if credential is not None else None
        return RepositoryTarget(repository=repo, credential_token=token)

    async def names(
        self, session: AsyncSession, repository_ids: set[uuid.UUID]
    ) -> dict[uuid.UUID, str]:
        return await self._repository_dao.names_by_ids(session, repository_ids)

    async def mark_synced(
        self, session: AsyncSession, repository_id: uuid.UUID, at: datetime
    ) -> None:
        await self._repository_dao.touch_last_sync(session, repository_id, at)
