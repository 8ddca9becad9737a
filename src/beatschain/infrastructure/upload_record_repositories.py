"""Infrastructure adapters for upload-record persistence."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

from minio.error import S3Error

from beatschain.application.ports import ProviderError
from beatschain.domain.models import UploadRecord
from beatschain.infrastructure.minio_storage import build_minio_client
from beatschain.utils.config import MinIOConfig

logger = logging.getLogger(__name__)

PROVIDER = "record-store"


@dataclass(slots=True)
class InMemoryUploadRecordRepository:
    """Process-local records; lost on restart."""

    records: dict[str, UploadRecord] = field(default_factory=dict)

    async def save(self, record: UploadRecord) -> None:
        self.records[record.job_id] = record

    async def get(self, job_id: str) -> UploadRecord | None:
        return self.records.get(job_id)


@dataclass(slots=True)
class MinIOUploadRecordRepository:
    """Adapter that keeps one JSON document per job in S3-compatible storage."""

    config: MinIOConfig
    object_prefix: str = "records"
    client: Any = field(default=None)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = build_minio_client(self.config)

    def object_name(self, job_id: str) -> str:
        return f"{self.object_prefix.strip('/')}/{job_id}.json"

    async def save(self, record: UploadRecord) -> None:
        await asyncio.to_thread(self._save_sync, record)

    async def get(self, job_id: str) -> UploadRecord | None:
        return await asyncio.to_thread(self._get_sync, job_id)

    def _save_sync(self, record: UploadRecord) -> None:
        object_name = self.object_name(record.job_id)
        try:
            payload = json.dumps(record.as_dict(), allow_nan=False).encode("utf-8")
            if not self.client.bucket_exists(self.config.bucket):
                self.client.make_bucket(self.config.bucket)
            self.client.put_object(
                bucket_name=self.config.bucket,
                object_name=object_name,
                data=BytesIO(payload),
                length=len(payload),
                content_type="application/json",
            )
        except Exception as error:  # noqa: BLE001
            logger.warning("Upload record write failed.", extra={"object_name": object_name}, exc_info=error)
            raise ProviderError(PROVIDER, f"failed to write {object_name}: {error}") from error

    def _get_sync(self, job_id: str) -> UploadRecord | None:
        object_name = self.object_name(job_id)
        response = None
        try:
            response = self.client.get_object(bucket_name=self.config.bucket, object_name=object_name)
            data = json.loads(response.read())
        except S3Error as error:
            if error.code in {"NoSuchKey", "NoSuchBucket"}:
                return None
            raise ProviderError(PROVIDER, f"failed to read {object_name}: {error}") from error
        except Exception as error:  # noqa: BLE001
            raise ProviderError(PROVIDER, f"failed to read {object_name}: {error}") from error
        finally:
            if response is not None:
                response.close()
                response.release_conn()
        return UploadRecord.from_dict(data)
