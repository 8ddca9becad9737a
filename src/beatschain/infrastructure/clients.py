"""Select one adapter per external capability from configuration."""

from __future__ import annotations

import httpx

from beatschain.application.ports import StorageClient, UploadClients
from beatschain.application.upload_record_repository import UploadRecordRepository
from beatschain.infrastructure.attribution_webhook import WebhookAttributionClient
from beatschain.infrastructure.livepeer_transcode import LivepeerTranscodeClient
from beatschain.infrastructure.minio_storage import MinIOStorageClient
from beatschain.infrastructure.mint_backend import HttpMintClient
from beatschain.infrastructure.pinata_storage import PinataStorageClient
from beatschain.infrastructure.upload_record_repositories import (
    InMemoryUploadRecordRepository,
    MinIOUploadRecordRepository,
)
from beatschain.utils.config import OrchestratorConfig


def build_storage_client(
    config: OrchestratorConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StorageClient:
    if config.storage_provider == "minio":
        return MinIOStorageClient(config=config.minio)
    return PinataStorageClient(
        config=config.pinata,
        timeout_seconds=config.request_timeout_seconds,
        transport=transport,
    )


def build_upload_clients(
    config: OrchestratorConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> UploadClients:
    return UploadClients(
        storage=build_storage_client(config, transport=transport),
        transcode=LivepeerTranscodeClient(
            config=config.livepeer,
            timeout_seconds=config.request_timeout_seconds,
            transport=transport,
        ),
        mint=HttpMintClient(
            config=config.mint,
            timeout_seconds=config.mint_timeout_seconds,
            transport=transport,
        ),
        attribution=WebhookAttributionClient(
            config=config.attribution,
            timeout_seconds=config.request_timeout_seconds,
            transport=transport,
        ),
    )


def build_record_repository(config: OrchestratorConfig) -> UploadRecordRepository:
    if config.records.backend == "minio":
        return MinIOUploadRecordRepository(config=config.minio, object_prefix=config.records.object_prefix)
    return InMemoryUploadRecordRepository()
