"""CLI-facing handlers that delegate to application services."""

from __future__ import annotations

import asyncio
import json
import math
import mimetypes
from pathlib import Path
from uuid import uuid4

from beatschain.application.health_monitor import HealthCheckTask, HealthStatus
from beatschain.application.upload_service import OrchestrateUpload
from beatschain.domain.models import FileDescriptor, MetadataValue, UploadOutcome, UploadRecord
from beatschain.infrastructure.clients import build_record_repository, build_upload_clients
from beatschain.infrastructure.http_health_probe import HttpHealthProbe
from beatschain.infrastructure.logging_event_publisher import LoggingEventPublisher
from beatschain.utils.config import OrchestratorConfig, load_orchestrator_config, orchestrator_config_from_env

_event_publisher = LoggingEventPublisher()


def load_config(config_path: Path | None) -> OrchestratorConfig:
    if config_path is not None:
        return load_orchestrator_config(config_path)
    return orchestrator_config_from_env()


def build_upload_service(config: OrchestratorConfig) -> OrchestrateUpload:
    return OrchestrateUpload(
        clients=build_upload_clients(config),
        event_publisher=_event_publisher,
        records=build_record_repository(config),
    )


def parse_meta_options(options: list[str]) -> dict[str, MetadataValue]:
    """Parse repeated ``key=value`` options; numbers and booleans keep their type."""

    metadata: dict[str, MetadataValue] = {}
    for option in options:
        key, separator, raw_value = option.partition("=")
        key = key.strip()
        if not separator or not key:
            raise ValueError(f"Metadata option '{option}' must look like key=value.")
        metadata[key] = _coerce_scalar(raw_value.strip())
    return metadata


def _coerce_scalar(raw_value: str) -> MetadataValue:
    try:
        value = json.loads(raw_value)
    except json.JSONDecodeError:
        return raw_value
    if isinstance(value, float) and not math.isfinite(value):
        return raw_value
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return raw_value


def guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"


def upload_from_path(
    path: Path,
    *,
    content_type: str | None = None,
    owner: str | None = None,
    metadata: dict[str, MetadataValue] | None = None,
    config_path: Path | None = None,
    correlation_id: str | None = None,
) -> UploadOutcome:
    service = build_upload_service(load_config(config_path))
    file = FileDescriptor.from_bytes(path.name, content_type or guess_content_type(path), path.read_bytes())
    return asyncio.run(
        service.run(file, metadata or {}, owner=owner, correlation_id=correlation_id or str(uuid4()))
    )


def run_health_checks(
    url: str,
    *,
    interval_seconds: float,
    count: int,
    timeout_seconds: float = 10.0,
) -> list[HealthStatus]:
    task = HealthCheckTask(
        probe=HttpHealthProbe(base_url=url, timeout_seconds=timeout_seconds),
        interval_seconds=interval_seconds,
        max_checks=count,
    )

    async def _run() -> list[HealthStatus]:
        handle = task.start()
        await handle.wait()
        return list(task.history)

    return asyncio.run(_run())


def upload_status(job_id: str, *, config_path: Path | None = None) -> UploadRecord | None:
    records = build_record_repository(load_config(config_path))
    return asyncio.run(records.get(job_id))
