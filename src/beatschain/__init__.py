"""Public package exports for BeatsChain with lazy imports."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "ExtractedMetadata",
    "FileDescriptor",
    "UploadJob",
    "UploadOutcome",
    "UploadRecord",
    "UploadStage",
    "OrchestrateUpload",
    "OrchestratorConfig",
    "IngestValidationError",
    "validate_file_descriptor",
    "extract_metadata",
    "merge_metadata",
    "build_upload_clients",
]

_EXPORT_MODULES: dict[str, str] = {
    "ExtractedMetadata": "beatschain.domain.models",
    "FileDescriptor": "beatschain.domain.models",
    "UploadJob": "beatschain.domain.models",
    "UploadOutcome": "beatschain.domain.models",
    "UploadRecord": "beatschain.domain.models",
    "UploadStage": "beatschain.domain.models",
    "OrchestrateUpload": "beatschain.application.upload_service",
    "OrchestratorConfig": "beatschain.utils.config",
    "IngestValidationError": "beatschain.ingest_validation",
    "validate_file_descriptor": "beatschain.ingest_validation",
    "extract_metadata": "beatschain.metadata_extraction",
    "merge_metadata": "beatschain.domain.services",
    "build_upload_clients": "beatschain.infrastructure.clients",
}


def __getattr__(name: str) -> Any:
    if name not in _EXPORT_MODULES:
        raise AttributeError(f"module 'beatschain' has no attribute {name!r}")

    module = import_module(_EXPORT_MODULES[name])
    value = getattr(module, name)
    globals()[name] = value
    return value
