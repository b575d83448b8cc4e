"""analysis_jobs table."""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Text, desc, func, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from gitsummary.core.database import Base, TimestampMixin

JOB_PENDING = "PENDING"
JOB_CLONING = "CLONING"
JOB_PARSING = "PARSING"
JOB_COMPLETED = "COMPLETED"
JOB_FAILED = "FAILED"

JOB_STATUSES = (JOB_PENDING, JOB_CLONING, JOB_PARSING, JOB_COMPLETED, JOB_FAILED)
TERMINAL_JOB_STATUSES = frozenset({JOB_COMPLETED, JOB_FAILED})


class AnalysisJob(TimestampMixin, Base):
    __tablename__ = "analysis_jobs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    repository_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("repositories.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'PENDING'"))

    # filters forwarded to the extraction service
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    author_filter: Mapped[Optional[list]] = mapped_column(JSONB)
    all_branches: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false")
    )

    # progress
    total_commits: Mapped[Optional[int]] = mapped_column(Integer)
    processed_commits: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0")
    )
    error: Mapped[Optional[str]] = mapped_column(Text)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_analysis_jobs_created", desc("created_at")),
        Index("idx_analysis_jobs_repository", "repository_id"),
    )
