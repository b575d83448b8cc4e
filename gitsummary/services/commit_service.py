"""CommitService — the deduplicated commit store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.core.filters import CommitFilter
from gitsummary.core.tickets import extract_ticket_key, ticket_url
from gitsummary.dao.base import Page
from gitsummary.dao.commit_dao import CommitDAO
from gitsummary.models.commit import SUMMARY_PENDING, SUMMARY_STATUSES, Commit
from gitsummary.services import ValidationError

log = structlog.get_logger("gitsummary.store")


@dataclass
class CommitRecord:
    """One commit as observed by the extraction service."""

    sha: str
    author_name: str
    author_email: str
    commit_date: datetime
    message: str
    changed_paths: list[str] = field(default_factory=list)
    files_changed: int | None = None

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0].strip()

    @property
    def body(self) -> str:
        parts = self.message.split("\n", 1)
        return parts[1] if len(parts) > 1 else ""


@dataclass
class UpsertResult:
    inserted: bool


class CommitService:
    """Stateless service over the commits table."""

    def __init__(self, commit_dao: CommitDAO, jira_base_url: str | None = None) -> None:
        self._commit_dao = commit_dao
        self._jira_base_url = jira_base_url

    # ── ingestion ────────────────────────────────────────────────────────

    def build_row(self, repository_id: uuid.UUID, record: CommitRecord) -> dict:
        """Turn an observed commit into column values, extracting the ticket key."""
        if not record.sha:
            raise ValidationError("commit sha must not be empty", field="sha")
        if record.commit_date.tzinfo is None:
            raise ValidationError("commit_date must be timezone-aware", field="commit_date")
        key = extract_ticket_key(record.title, record.body)
        paths = [p for p in record.changed_paths if p]
        return {
            "repository_id": repository_id,
            "sha": record.sha,
            "author_name": record.author_name,
            "author_email": record.author_email,
            "commit_date": record.commit_date,
            "message": record.message,
            "message_title": record.title,
            "files_changed": (
                record.files_changed if record.files_changed is not None else len(paths)
            ),
            "changed_paths": paths,
            "summary_status": SUMMARY_PENDING,
            "jira_key": key,
            "jira_url": ticket_url(key, self._jira_base_url),
        }

    async def upsert(
        self, session: AsyncSession, repository_id: uuid.UUID, record: CommitRecord
    ) -> UpsertResult:
        """Insert *record* unless (repository, sha) is already stored."""
        inserted = await self._commit_dao.insert_if_absent(
            session, self.build_row(repository_id, record)
        )
        if not inserted:
            log.debug("store.duplicate_skipped", repository_id=str(repository_id), sha=record.sha)
        return UpsertResult(inserted=inserted)

    # ── read ─────────────────────────────────────────────────────────────

    async def query(
        self,
        session: AsyncSession,
        flt: CommitFilter,
        page: int = 1,
        page_size: int = 50,
    ) -> Page[Commit]:
        """Paginated commits matching *flt*, newest first."""
        if flt.summary_status is not None and flt.summary_status not in SUMMARY_STATUSES:
            raise ValidationError(
                f"unknown summary status: {flt.summary_status}", field="summary_status"
            )
        _check_date_range(flt)
        return await self._commit_dao.query(session, flt, page, page_size)

    async def list_for_export(self, session: AsyncSession, flt: CommitFilter) -> list[Commit]:
        _check_date_range(flt)
        return await self._commit_dao.list_for_export(session, flt)

    async def list_authors(
        self, session: AsyncSession, repository_id: uuid.UUID | None = None
    ) -> list[dict]:
        return await self._commit_dao.list_distinct_authors(session, repository_id)

    async def summary_status_counts(
        self, session: AsyncSession, repository_id: uuid.UUID | None = None
    ) -> dict[str, int]:
        counts = await self._commit_dao.count_by_summary_status(session, repository_id)
        result = {status.lower(): n for status, n in counts.items()}
        result["total"] = sum(counts.values())
        return result

    # ── summarization bookkeeping ────────────────────────────────────────

    async def list_summary_backlog(
        self,
        session: AsyncSession,
        limit: int,
        repository_id: uuid.UUID | None = None,
        failed_before: datetime | None = None,
    ) -> list[Commit]:
        return await self._commit_dao.list_summary_backlog(
            session, limit, repository_id=repository_id, failed_before=failed_before
        )

    async def claim_for_summary(
        self, session: AsyncSession, commit_id: uuid.UUID, attempted_at: datetime
    ) -> bool:
        return await self._commit_dao.claim_for_summary(session, commit_id, attempted_at)

    async def update_summary(
        self,
        session: AsyncSession,
        commit_id: uuid.UUID,
        *,
        status: str,
        summary: str | None = None,
    ) -> None:
        await self._commit_dao.update_summary(session, commit_id, status=status, summary=summary)


def _check_date_range(flt: CommitFilter) -> None:
    rng = flt.date_range
    if rng.start is not None and rng.end is not None and rng.start > rng.end:
        raise ValidationError("start_date must not be after end_date", field="start_date")
