"""Export request/response schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, field_validator


class ExportRequest(BaseModel):
    repository_ids: list[uuid.UUID] = []
    author_emails: list[str] = []
    start_date: date | None = None
    end_date: date | None = None
    ai_narrative: bool = True

    @field_validator("author_emails", mode="before")
    @classmethod
    def _split_emails(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [e.strip() for e in v if isinstance(e, str) and e.strip()]


class FileDescriptorResponse(BaseModel):
    name: str
    key: str
    size: int
    repository_id: uuid.UUID


class ExportResponse(BaseModel):
    export_id: uuid.UUID
    files: list[FileDescriptorResponse]
    total_commits: int


class ExportJobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    repository_ids: list[str]
    author_emails: list[str]
    start_date: date | None
    end_date: date | None
    status: str
    files: list[FileDescriptorResponse]
    row_count: int
    created_at: datetime
    completed_at: datetime | None
