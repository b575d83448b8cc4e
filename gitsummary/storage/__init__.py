"""Persisted-object storage backends."""

from gitsummary.storage.blob_store import BlobStore, LocalBlobStore

__all__ = ["BlobStore", "LocalBlobStore"]
