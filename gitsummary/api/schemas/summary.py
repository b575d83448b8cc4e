"""Summarization trigger schemas."""

from __future__ import annotations

import uuid

from pydantic import BaseModel


class BatchRequest(BaseModel):
    repository_id: uuid.UUID | None = None


class BatchResponse(BaseModel):
    success: int
    failed: int
    rate_limited: bool
