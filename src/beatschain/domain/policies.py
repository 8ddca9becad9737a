"""Domain value objects representing stable upload policies."""

from __future__ import annotations

from dataclasses import dataclass

MAX_UPLOAD_SIZE_BYTES = 50 * 1024 * 1024

ALLOWED_AUDIO_MIME_TYPES: tuple[str, ...] = (
    "audio/mpeg",
    "audio/wav",
    "audio/mp4",
    "audio/aac",
)

FALLBACK_MARKER = "local-"
ANONYMOUS_OWNER = "anonymous"


@dataclass(frozen=True, slots=True)
class IngestPolicy:
    """Policy describing which uploads are accepted for minting."""

    policy_id: str
    max_file_size_bytes: int = MAX_UPLOAD_SIZE_BYTES
    allowed_mime_types: tuple[str, ...] = ALLOWED_AUDIO_MIME_TYPES
    policy_version: str = "v1"


DEFAULT_INGEST_POLICY = IngestPolicy(policy_id="upload-ingest-default", policy_version="v1")
