"""Tests for the poll_job polling contract."""

from dataclasses import dataclass

import pytest

from gitsummary.engines.job_coordinator.polling import poll_job


@dataclass
class _Snap:
    status: str
    processed_commits: int = 0


def _fetcher(statuses):
    snaps = iter(_Snap(s, i) for i, s in enumerate(statuses))
    calls = []

    async def fetch():
        calls.append(1)
        return next(snaps)

    return fetch, calls


async def test_stops_on_completed():
    fetch, calls = _fetcher(["PENDING", "CLONING", "PARSING", "COMPLETED", "COMPLETED"])

    seen = [s.status async for s in poll_job(fetch, interval=0)]

    assert seen == ["PENDING", "CLONING", "PARSING", "COMPLETED"]
    assert len(calls) == 4


async def test_stops_on_failed():
    fetch, _ = _fetcher(["CLONING", "FAILED"])
    seen = [s.status async for s in poll_job(fetch, interval=0)]
    assert seen == ["CLONING", "FAILED"]


async def test_already_terminal_yields_once():
    fetch, calls = _fetcher(["COMPLETED"])
    seen = [s async for s in poll_job(fetch, interval=0)]
    assert len(seen) == 1
    assert len(calls) == 1


async def test_timeout_raises():
    async def fetch():
        return _Snap("CLONING")

    with pytest.raises(TimeoutError, match="CLONING"):
        async for _ in poll_job(fetch, interval=0.01, timeout=0.05):
            pass
