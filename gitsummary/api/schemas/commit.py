"""Commit, author and summary-status schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CommitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    repository_id: uuid.UUID
    sha: str
    author_name: str
    author_email: str
    commit_date: datetime
    message: str
    message_title: str
    files_changed: int
    changed_paths: list[str]
    summary: str | None
    summary_status: str
    jira_key: str | None
    jira_url: str | None
    created_at: datetime


class AuthorResponse(BaseModel):
    email: str
    name: str
    commit_count: int


class SummaryStatusResponse(BaseModel):
    pending: int
    processing: int
    completed: int
    failed: int
    total: int
