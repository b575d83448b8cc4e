"""Tests for the local blob store."""

import pytest

from gitsummary.storage.blob_store import LocalBlobStore


async def test_put_then_delete(tmp_path):
    store = LocalBlobStore(tmp_path)

    await store.put("exp/report.xlsx", b"data", "application/octet-stream")
    assert (tmp_path / "exp" / "report.xlsx").read_bytes() == b"data"

    await store.delete("exp/report.xlsx")
    assert not (tmp_path / "exp" / "report.xlsx").exists()


async def test_delete_missing_is_noop(tmp_path):
    await LocalBlobStore(tmp_path).delete("nope.xlsx")


@pytest.mark.parametrize("key", ["../escape.xlsx", "a/../../escape.xlsx"])
async def test_rejects_keys_outside_root(tmp_path, key):
    store = LocalBlobStore(tmp_path / "root")
    with pytest.raises(ValueError):
        await store.put(key, b"x", "application/octet-stream")
