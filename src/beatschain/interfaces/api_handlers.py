"""API-facing handlers that delegate to application services."""

from __future__ import annotations

import json
import math
from functools import lru_cache

from beatschain.application.upload_record_repository import UploadRecordRepository
from beatschain.application.upload_service import OrchestrateUpload
from beatschain.domain.models import FileDescriptor, MetadataValue, UploadOutcome, UploadRecord
from beatschain.infrastructure.clients import build_record_repository, build_upload_clients
from beatschain.infrastructure.logging_event_publisher import LoggingEventPublisher
from beatschain.utils.config import orchestrator_config_from_env

_event_publisher = LoggingEventPublisher()


@lru_cache(maxsize=1)
def get_record_repository() -> UploadRecordRepository:
    return build_record_repository(orchestrator_config_from_env())


@lru_cache(maxsize=1)
def get_upload_service() -> OrchestrateUpload:
    config = orchestrator_config_from_env()
    return OrchestrateUpload(
        clients=build_upload_clients(config),
        event_publisher=_event_publisher,
        records=get_record_repository(),
    )


def upload_size_limit() -> int:
    return get_upload_service().ingest_policy.max_file_size_bytes


def parse_metadata_json(raw: str | None) -> dict[str, MetadataValue]:
    """Parse the ``metadata`` form field into a flat mapping of scalars."""

    if raw is None or not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as error:
        raise ValueError(f"metadata is not valid JSON: {error.msg}") from error
    if not isinstance(payload, dict):
        raise ValueError("metadata must be a JSON object.")
    for key, value in payload.items():
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise ValueError(f"metadata value for '{key}' must be a scalar.")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"metadata value for '{key}' must be a finite number.")
    return payload


async def run_upload(
    *,
    filename: str,
    content_type: str,
    payload: bytes,
    user_metadata: dict[str, MetadataValue],
    owner: str | None,
    correlation_id: str,
    size_bytes: int | None = None,
) -> UploadOutcome:
    """Run one upload; ``size_bytes`` overrides ``len(payload)`` for bodies that were not read."""

    if size_bytes is None:
        file = FileDescriptor.from_bytes(filename, content_type, payload)
    else:
        file = FileDescriptor(name=filename, content_type=content_type, size_bytes=size_bytes, data=payload)
    return await get_upload_service().run(file, user_metadata, owner=owner, correlation_id=correlation_id)


async def get_upload_record(job_id: str) -> UploadRecord | None:
    return await get_record_repository().get(job_id)


__all__ = [
    "get_record_repository",
    "get_upload_record",
    "get_upload_service",
    "parse_metadata_json",
    "run_upload",
    "upload_size_limit",
]
