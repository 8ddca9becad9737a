"""DDD application layer."""

from .health_monitor import HealthCheckHandle, HealthCheckTask, HealthStatus
from .ports import (
    AttributionClient,
    EventPublisher,
    HealthProbe,
    MintClient,
    NullEventPublisher,
    ProviderError,
    StorageClient,
    TranscodeClient,
    UploadClients,
)
from .upload_record_repository import UploadRecordRepository
from .upload_service import OrchestrateUpload

__all__ = [
    "EventPublisher",
    "NullEventPublisher",
    "HealthCheckHandle",
    "HealthCheckTask",
    "HealthStatus",
    "AttributionClient",
    "HealthProbe",
    "MintClient",
    "ProviderError",
    "StorageClient",
    "TranscodeClient",
    "UploadClients",
    "UploadRecordRepository",
    "OrchestrateUpload",
]
