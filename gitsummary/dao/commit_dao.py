"""CommitDAO — commits table operations."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Select, and_, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from gitsummary.core.filters import CommitFilter, DateRange
from gitsummary.dao.base import PAGE_SIZE_DEFAULT, BaseDAO, Page
from gitsummary.models.commit import (
    SUMMARY_FAILED,
    SUMMARY_PENDING,
    SUMMARY_PROCESSING,
    SUMMARY_STATUSES,
    Commit,
)


def _apply_filter(query: Select, flt: CommitFilter) -> Select:
    if flt.repository_ids:
        query = query.where(Commit.repository_id.in_(flt.repository_ids))
    if flt.author_emails:
        query = query.where(Commit.author_email.in_(flt.author_emails))
    query = _apply_date_range(query, flt.date_range)
    if flt.summary_status is not None:
        query = query.where(Commit.summary_status == flt.summary_status)
    return query


def _apply_date_range(query: Select, date_range: DateRange) -> Select:
    lower = date_range.lower_bound()
    upper = date_range.upper_bound()
    if lower is not None:
        query = query.where(Commit.commit_date >= lower)
    if upper is not None:
        query = query.where(Commit.commit_date < upper)
    return query


class CommitDAO(BaseDAO[Commit]):
    model = Commit

    # ── read ──────────────────────────────────────────────────────────────

    async def query(
        self,
        session: AsyncSession,
        flt: CommitFilter,
        page: int = 1,
        page_size: int = PAGE_SIZE_DEFAULT,
    ) -> Page[Commit]:
        """Paginated commits, newest commit date first (API)."""
        query = _apply_filter(select(Commit), flt).order_by(
            Commit.commit_date.desc(), Commit.id.desc()
        )
        return await self.paginate(session, query, page, page_size)

    async def list_for_export(self, session: AsyncSession, flt: CommitFilter) -> list[Commit]:
        """All matching commits, oldest first (ReportCompiler)."""
        query = _apply_filter(select(Commit), flt).order_by(
            Commit.commit_date.asc(), Commit.id.asc()
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def list_distinct_authors(
        self, session: AsyncSession, repository_id: uuid.UUID | None = None
    ) -> list[dict[str, Any]]:
        """(email, name, commit_count) tuples, most active first."""
        commit_count = func.count(Commit.id).label("commit_count")
        stmt = select(Commit.author_email, Commit.author_name, commit_count).group_by(
            Commit.author_email, Commit.author_name
        )
        if repository_id is not None:
            stmt = stmt.where(Commit.repository_id == repository_id)
        stmt = stmt.order_by(commit_count.desc(), Commit.author_email.asc())
        rows = await session.execute(stmt)
        return [
            {"email": row.author_email, "name": row.author_name, "commit_count": row.commit_count}
            for row in rows
        ]

    async def count_by_summary_status(
        self, session: AsyncSession, repository_id: uuid.UUID | None = None
    ) -> dict[str, int]:
        """Return ``{status: count}`` with every summary status present."""
        stmt = select(Commit.summary_status, func.count(Commit.id)).group_by(
            Commit.summary_status
        )
        if repository_id is not None:
            stmt = stmt.where(Commit.repository_id == repository_id)
        rows = await session.execute(stmt)
        counts = {status: 0 for status in SUMMARY_STATUSES}
        for status, n in rows:
            counts[status] = n
        return counts

    async def list_summary_backlog(
        self,
        session: AsyncSession,
        limit: int,
        repository_id: uuid.UUID | None = None,
        failed_before: datetime | None = None,
    ) -> list[Commit]:
        """Commits awaiting a summary, newest commit date first (SummarizerRunner).

        FAILED commits are included only when their last attempt precedes
        *failed_before* (if given).
        """
        failed = Commit.summary_status == SUMMARY_FAILED
        if failed_before is not None:
            failed = and_(
                failed,
                or_(
                    Commit.summary_attempted_at.is_(None),
                    Commit.summary_attempted_at < failed_before,
                ),
            )
        stmt = (
            select(Commit)
            .where(or_(Commit.summary_status == SUMMARY_PENDING, failed))
            .order_by(Commit.commit_date.desc(), Commit.id.desc())
            .limit(limit)
        )
        if repository_id is not None:
            stmt = stmt.where(Commit.repository_id == repository_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    # ── write ─────────────────────────────────────────────────────────────

    async def insert_if_absent(self, session: AsyncSession, values: dict[str, Any]) -> bool:
        """Insert one commit unless (repository_id, sha) already exists.

        ON CONFLICT (repository_id, sha) DO NOTHING. Returns True if inserted.
        """
        stmt = (
            insert(Commit)
            .values(**values)
            .on_conflict_do_nothing(constraint="uq_commits_repository_sha")
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def claim_for_summary(
        self, session: AsyncSession, pk: uuid.UUID, attempted_at: datetime
    ) -> bool:
        """Atomically move a PENDING/FAILED commit to PROCESSING.

        Returns False if another worker claimed it first.
        """
        self._require_pk(pk)
        stmt = (
            update(Commit)
            .where(
                Commit.id == pk,
                Commit.summary_status.in_((SUMMARY_PENDING, SUMMARY_FAILED)),
            )
            .values(summary_status=SUMMARY_PROCESSING, summary_attempted_at=attempted_at)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def update_summary(
        self,
        session: AsyncSession,
        pk: uuid.UUID,
        *,
        status: str,
        summary: str | None = None,
    ) -> None:
        """Write the outcome of a summarization attempt.

        *summary* is only written when given, so a requeue keeps no stale text.
        """
        self._require_pk(pk)
        values: dict[str, Any] = {"summary_status": status}
        if summary is not None:
            values["summary"] = summary
        stmt = update(Commit).where(Commit.id == pk).values(**values)
        await session.execute(stmt)
