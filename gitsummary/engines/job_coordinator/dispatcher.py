"""ExtractionDispatcher — hands a job off to the external extraction service."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import httpx
import structlog

from gitsummary.services import ExternalServiceError

log = structlog.get_logger("gitsummary.engine.dispatch")


@dataclass
class DispatchPayload:
    """Everything the extraction service needs to clone and walk a repository."""

    job_id: uuid.UUID
    repo_url: str
    branch: str
    credential_token: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    author_filter: list[str] = field(default_factory=list)
    all_branches: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "jobId": str(self.job_id),
            "repoUrl": self.repo_url,
            "branch": self.branch,
            "credentialToken": self.credential_token,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "authorFilter": ",".join(self.author_filter) if self.author_filter else None,
            "allBranches": self.all_branches,
        }


class ExtractionDispatcher:
    """POSTs analysis requests to ``<base_url>/analyze``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ExtractionDispatcher:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def dispatch(self, payload: DispatchPayload) -> None:
        """Send *payload*; raise :class:`ExternalServiceError` unless accepted (2xx)."""
        try:
            response = await self._client.post("/analyze", json=payload.to_json())
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"extraction service unreachable: {exc}") from exc
        if response.is_error:
            raise ExternalServiceError(
                f"extraction service returned {response.status_code}: {response.text[:200]}"
            )
        log.info("dispatch.accepted", job_id=str(payload.job_id), status=response.status_code)
