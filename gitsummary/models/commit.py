"""commits table."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    desc,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from gitsummary.core.database import Base, TimestampMixin

SUMMARY_PENDING = "PENDING"
SUMMARY_PROCESSING = "PROCESSING"
SUMMARY_COMPLETED = "COMPLETED"
SUMMARY_FAILED = "FAILED"

SUMMARY_STATUSES = (SUMMARY_PENDING, SUMMARY_PROCESSING, SUMMARY_COMPLETED, SUMMARY_FAILED)


class Commit(TimestampMixin, Base):
    __tablename__ = "commits"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    repository_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
    )
    sha: Mapped[str] = mapped_column(Text, nullable=False)
    author_name: Mapped[str] = mapped_column(Text, nullable=False)
    author_email: Mapped[str] = mapped_column(Text, nullable=False)
    commit_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    message_title: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    files_changed: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    changed_paths: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )

    # AI summary
    summary: Mapped[Optional[str]] = mapped_column(Text)
    summary_status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'PENDING'")
    )
    summary_attempted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # ticket link
    jira_key: Mapped[Optional[str]] = mapped_column(Text)
    jira_url: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        UniqueConstraint("repository_id", "sha", name="uq_commits_repository_sha"),
        Index("idx_commits_repository_date", "repository_id", desc("commit_date")),
        Index("idx_commits_author", "author_email"),
        Index(
            "idx_commits_summary_backlog",
            desc("commit_date"),
            postgresql_where="summary_status IN ('PENDING', 'FAILED')",
        ),
    )
