"""Commit filter value objects shared by the store, API and report compiler."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-date range; either bound may be open."""

    start: date | None = None
    end: date | None = None

    def lower_bound(self) -> datetime | None:
        """Start of the first day (UTC), or None."""
        if self.start is None:
            return None
        return datetime.combine(self.start, time.min, tzinfo=timezone.utc)

    def upper_bound(self) -> datetime | None:
        """Start of the day after ``end`` (UTC, exclusive), or None."""
        if self.end is None:
            return None
        return datetime.combine(self.end + timedelta(days=1), time.min, tzinfo=timezone.utc)


@dataclass(frozen=True)
class CommitFilter:
    repository_ids: list[uuid.UUID] = field(default_factory=list)
    author_emails: list[str] = field(default_factory=list)
    date_range: DateRange = field(default_factory=DateRange)
    summary_status: str | None = None
