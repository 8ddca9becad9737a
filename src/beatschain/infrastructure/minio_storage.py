"""Content-addressed storage on S3-compatible object storage via the MinIO client."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from io import BytesIO
from typing import Any

from beatschain.application.ports import ProviderError
from beatschain.domain.models import FileDescriptor, MetadataValue, StorageResult
from beatschain.utils.config import MinIOConfig

logger = logging.getLogger(__name__)

PROVIDER = "minio"


def content_identifier(payload: bytes) -> str:
    return f"sha256-{hashlib.sha256(payload).hexdigest()}"


def build_minio_client(config: MinIOConfig) -> Any:
    """Build a MinIO client for object storage."""

    from minio import Minio

    return Minio(
        endpoint=config.endpoint,
        access_key=config.access_key,
        secret_key=config.secret_key,
        secure=config.secure,
        region=config.region,
    )


@dataclass(slots=True)
class MinIOStorageClient:
    """Store uploads under their SHA-256 digest and return a presigned URL."""

    config: MinIOConfig
    client: Any = field(default=None)

    def __post_init__(self) -> None:
        if self.client is None:
            self.client = build_minio_client(self.config)

    async def store(self, file: FileDescriptor, metadata: Mapping[str, MetadataValue]) -> StorageResult:
        return await asyncio.to_thread(
            self._put, file.data, file.content_type, _object_metadata(file.name, metadata)
        )

    async def store_document(self, name: str, document: Mapping[str, Any]) -> StorageResult:
        try:
            payload = json.dumps(document, sort_keys=True, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as error:
            raise ProviderError(PROVIDER, f"document {name} is not valid JSON: {error}") from error
        return await asyncio.to_thread(self._put, payload, "application/json", _object_metadata(name, {}))

    def _put(self, payload: bytes, content_type: str, object_metadata: dict[str, str]) -> StorageResult:
        content_id = content_identifier(payload)
        object_name = f"{self.config.object_prefix.strip('/')}/{content_id}"
        try:
            if not self.client.bucket_exists(self.config.bucket):
                self.client.make_bucket(self.config.bucket)

            self.client.put_object(
                bucket_name=self.config.bucket,
                object_name=object_name,
                data=BytesIO(payload),
                length=len(payload),
                content_type=content_type,
                metadata=object_metadata,
            )
            url = self.client.presigned_get_object(
                bucket_name=self.config.bucket,
                object_name=object_name,
                expires=timedelta(hours=self.config.url_expiry_hours),
            )
        except Exception as error:  # noqa: BLE001
            logger.warning("Object storage write failed.", extra={"object_name": object_name}, exc_info=error)
            raise ProviderError(PROVIDER, f"failed to store {object_name}: {error}") from error
        return StorageResult(content_id=content_id, url=url)


def _object_metadata(name: str, metadata: Mapping[str, MetadataValue]) -> dict[str, str]:
    # S3 user metadata must be ASCII header values.
    values = {"original-name": name}
    for key in ("title", "artist", "genre", "bpm"):
        value = metadata.get(key)
        if value is not None:
            values[key] = str(value)
    return {key: value.encode("ascii", "ignore").decode("ascii") for key, value in values.items()}
