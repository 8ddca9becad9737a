"""Upload ingest validation.

Checks the declared file descriptor (name, MIME type, byte size) against the
ingest policy before any network call is made. Validation never inspects the
audio payload; that is the metadata extractor's job.
"""

from __future__ import annotations

from dataclasses import dataclass

from beatschain.domain.models import FileDescriptor
from beatschain.domain.policies import DEFAULT_INGEST_POLICY, IngestPolicy


@dataclass(frozen=True, slots=True)
class IngestValidationError(ValueError):
    code: str
    message: str

    def __str__(self) -> str:
        return self.message

    def as_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


# Vendor and legacy spellings of the allowed formats.
CONTENT_TYPE_ALIASES: dict[str, str] = {
    "audio/mp3": "audio/mpeg",
    "audio/x-wav": "audio/wav",
    "audio/wave": "audio/wav",
    "audio/vnd.wave": "audio/wav",
    "audio/x-m4a": "audio/mp4",
    "audio/m4a": "audio/mp4",
    "audio/x-aac": "audio/aac",
    "audio/aacp": "audio/aac",
}


def normalize_content_type(content_type: str | None) -> str:
    if not content_type:
        return ""
    base = content_type.split(";", 1)[0].strip().lower()
    return CONTENT_TYPE_ALIASES.get(base, base)


def validate_file_descriptor(file: FileDescriptor | None, policy: IngestPolicy | None = None) -> FileDescriptor:
    policy = policy or DEFAULT_INGEST_POLICY
    if file is None:
        raise IngestValidationError("missing_file", "no file provided")
    if file.size_bytes <= 0:
        raise IngestValidationError("empty_file", "file is empty")
    if file.size_bytes > policy.max_file_size_bytes:
        raise IngestValidationError(
            "file_too_large",
            f"file too large (max {policy.max_file_size_bytes} bytes)",
        )

    content_type = normalize_content_type(file.content_type)
    if content_type not in policy.allowed_mime_types:
        allowed = ", ".join(policy.allowed_mime_types)
        raise IngestValidationError(
            "unsupported_mime_type",
            f"unsupported file type: {file.content_type or 'unknown'} (allowed: {allowed})",
        )
    return file
