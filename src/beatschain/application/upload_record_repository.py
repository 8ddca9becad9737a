"""Application port for persisting upload job records."""

from __future__ import annotations

from typing import Protocol

from beatschain.domain.models import UploadRecord


class UploadRecordRepository(Protocol):
    """Port implemented by infrastructure adapters for upload-record persistence.

    Adapters raise ``ProviderError`` when the backing store is unavailable.
    A missing record is not an error and reads as ``None``.
    """

    async def save(self, record: UploadRecord) -> None:
        """Insert or replace the record for ``record.job_id``."""

    async def get(self, job_id: str) -> UploadRecord | None:
        """Return the latest record for a job, if one was saved."""
