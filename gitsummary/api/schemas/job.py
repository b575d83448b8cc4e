"""Analysis job request/response schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, field_validator


class SubmitJobRequest(BaseModel):
    repository_id: uuid.UUID
    start_date: date | None = None
    end_date: date | None = None
    author_filter: str | list[str] | None = None
    all_branches: bool = False


class SubmitJobResponse(BaseModel):
    id: uuid.UUID
    status: str
    message: str


class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    repository_id: uuid.UUID
    status: str
    start_date: date | None
    end_date: date | None
    author_filter: list[str] | None
    all_branches: bool
    total_commits: int | None
    processed_commits: int
    error: str | None
    created_at: datetime
    completed_at: datetime | None


class ProgressReportRequest(BaseModel):
    status: str | None = None
    total_commits: int | None = None
    processed_commits: int | None = None
    error: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _upper_status(cls, v: str | None) -> str | None:
        return v.strip().upper() if isinstance(v, str) else v


class CommitIn(BaseModel):
    sha: str
    author_name: str
    author_email: str
    commit_date: datetime
    message: str
    changed_paths: list[str] = []
    files_changed: int | None = None

    @field_validator("sha", "author_email", mode="before")
    @classmethod
    def _strip_whitespace(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


class IngestCommitsRequest(BaseModel):
    commits: list[CommitIn]


class IngestResponse(BaseModel):
    inserted: int
    skipped: int
