"""DDD domain layer."""

from .events import DomainEvent, StageFallbackApplied, UploadCompleted, UploadFailed, UploadProgressed
from .models import (
    STAGE_ORDER,
    STAGE_PROGRESS,
    ExtractedMetadata,
    FileDescriptor,
    JobClosedError,
    MintedToken,
    StageTransitionError,
    StorageResult,
    StreamAsset,
    UploadJob,
    UploadOutcome,
    UploadRecord,
    UploadStage,
)
from .policies import (
    ALLOWED_AUDIO_MIME_TYPES,
    DEFAULT_INGEST_POLICY,
    FALLBACK_MARKER,
    MAX_UPLOAD_SIZE_BYTES,
    IngestPolicy,
)
from .services import build_token_attributes, fallback_identifier, is_fallback_identifier, merge_metadata

__all__ = [
    "DomainEvent",
    "UploadProgressed",
    "StageFallbackApplied",
    "UploadCompleted",
    "UploadFailed",
    "STAGE_ORDER",
    "STAGE_PROGRESS",
    "ExtractedMetadata",
    "FileDescriptor",
    "JobClosedError",
    "MintedToken",
    "StageTransitionError",
    "StorageResult",
    "StreamAsset",
    "UploadJob",
    "UploadOutcome",
    "UploadRecord",
    "UploadStage",
    "ALLOWED_AUDIO_MIME_TYPES",
    "DEFAULT_INGEST_POLICY",
    "FALLBACK_MARKER",
    "MAX_UPLOAD_SIZE_BYTES",
    "IngestPolicy",
    "build_token_attributes",
    "fallback_identifier",
    "is_fallback_identifier",
    "merge_metadata",
]
