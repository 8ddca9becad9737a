"""Domain models for the upload and mint workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union
from uuid import uuid4

from beatschain.domain.policies import ANONYMOUS_OWNER

MetadataValue = Union[str, int, float, bool, None]


class UploadStage(str, Enum):
    """Lifecycle states for an upload job."""

    IDLE = "idle"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    MERGING = "merging"
    NOTIFYING = "notifying"
    STORING = "storing"
    TRANSCODING = "transcoding"
    MINTING = "minting"
    ATTRIBUTING = "attributing"
    COMPLETED = "completed"
    ERROR = "error"


STAGE_ORDER: tuple[UploadStage, ...] = (
    UploadStage.IDLE,
    UploadStage.VALIDATING,
    UploadStage.EXTRACTING,
    UploadStage.MERGING,
    UploadStage.NOTIFYING,
    UploadStage.STORING,
    UploadStage.TRANSCODING,
    UploadStage.MINTING,
    UploadStage.ATTRIBUTING,
    UploadStage.COMPLETED,
)

STAGE_PROGRESS: dict[UploadStage, int] = {
    UploadStage.IDLE: 0,
    UploadStage.VALIDATING: 10,
    UploadStage.EXTRACTING: 20,
    UploadStage.MERGING: 30,
    UploadStage.NOTIFYING: 40,
    UploadStage.STORING: 60,
    UploadStage.TRANSCODING: 80,
    UploadStage.MINTING: 90,
    UploadStage.ATTRIBUTING: 95,
    UploadStage.COMPLETED: 100,
}

# Only these stages may transition to ERROR; the rest absorb failures.
FATAL_STAGES: frozenset[UploadStage] = frozenset({UploadStage.VALIDATING, UploadStage.MINTING})

TERMINAL_STAGES: frozenset[UploadStage] = frozenset({UploadStage.COMPLETED, UploadStage.ERROR})


class StageTransitionError(RuntimeError):
    """Raised when a job is asked to skip, repeat or rewind a stage."""


class JobClosedError(RuntimeError):
    """Raised when a terminal job is mutated."""


@dataclass(frozen=True, slots=True)
class FileDescriptor:
    """Source file reference submitted by a user."""

    name: str
    content_type: str
    size_bytes: int
    data: bytes = b""

    @classmethod
    def from_bytes(cls, name: str, content_type: str, data: bytes) -> "FileDescriptor":
        return cls(name=name, content_type=content_type, size_bytes=len(data), data=data)


@dataclass(frozen=True, slots=True)
class ExtractedMetadata:
    """Read-only output of audio inspection."""

    title: str | None = None
    artist: str | None = None
    duration: float | None = None
    bitrate: int | None = None
    sample_rate: int | None = None
    bpm: float | None = None
    channels: int | None = None
    codec: str | None = None
    genre: str | None = None

    def as_dict(self) -> dict[str, MetadataValue]:
        values = {
            "title": self.title,
            "artist": self.artist,
            "duration": self.duration,
            "bitrate": self.bitrate,
            "sample_rate": self.sample_rate,
            "bpm": self.bpm,
            "channels": self.channels,
            "codec": self.codec,
            "genre": self.genre,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True, slots=True)
class StorageResult:
    """Content identifier and retrieval locator of a persisted asset."""

    content_id: str
    url: str
    fallback: bool = False


@dataclass(frozen=True, slots=True)
class StreamAsset:
    """Identifier and playback locator produced by transcoding."""

    asset_id: str
    playback_id: str
    playback_url: str | None = None
    fallback: bool = False


@dataclass(frozen=True, slots=True)
class MintedToken:
    """Final output of a successful mint."""

    token_id: str
    transaction_ref: str
    network: str


@dataclass(slots=True)
class UploadJob:
    """One in-flight asset submission, owned by a single orchestration call."""

    file: FileDescriptor | None
    owner: str = ANONYMOUS_OWNER
    job_id: str = field(default_factory=lambda: str(uuid4()))
    stage: UploadStage = UploadStage.IDLE
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    attribution_id: str | None = None
    storage: StorageResult | None = None
    stream: StreamAsset | None = None
    metadata_document: StorageResult | None = None
    token: MintedToken | None = None
    failed_stage: UploadStage | None = None
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def progress(self) -> int:
        if self.stage is UploadStage.ERROR:
            return STAGE_PROGRESS[self.failed_stage or UploadStage.IDLE]
        return STAGE_PROGRESS[self.stage]

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise JobClosedError(f"Upload job {self.job_id} is closed in stage '{self.stage.value}'.")

    def advance(self, stage: UploadStage) -> None:
        """Move to the immediate successor of the current stage."""

        self._ensure_open()
        expected = STAGE_ORDER[STAGE_ORDER.index(self.stage) + 1]
        if stage is not expected:
            raise StageTransitionError(
                f"Cannot move job {self.job_id} from '{self.stage.value}' to '{stage.value}'; "
                f"next stage is '{expected.value}'."
            )
        self.stage = stage

    def record(self, **values: MetadataValue) -> None:
        self._ensure_open()
        self.metadata.update(values)

    def replace_metadata(self, metadata: dict[str, MetadataValue]) -> None:
        self._ensure_open()
        self.metadata = dict(metadata)

    def complete(self, token: MintedToken) -> None:
        self.advance(UploadStage.COMPLETED)
        self.token = token

    def fail(self, message: str) -> None:
        self._ensure_open()
        if self.stage not in FATAL_STAGES:
            raise StageTransitionError(f"Stage '{self.stage.value}' cannot fail an upload job.")
        self.failed_stage = self.stage
        self.error_message = message
        self.stage = UploadStage.ERROR


@dataclass(frozen=True, slots=True)
class UploadOutcome:
    """Terminal payload reported to the caller."""

    job_id: str
    succeeded: bool
    stage: UploadStage
    token_id: str | None = None
    transaction_ref: str | None = None
    network: str | None = None
    storage_id: str | None = None
    storage_url: str | None = None
    playback_id: str | None = None
    attribution_id: str | None = None
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def from_job(cls, job: UploadJob) -> "UploadOutcome":
        if job.stage is UploadStage.COMPLETED and job.token is not None:
            return cls(
                job_id=job.job_id,
                succeeded=True,
                stage=UploadStage.COMPLETED,
                token_id=job.token.token_id,
                transaction_ref=job.token.transaction_ref,
                network=job.token.network,
                storage_id=job.storage.content_id if job.storage else None,
                storage_url=job.storage.url if job.storage else None,
                playback_id=job.stream.playback_id if job.stream else None,
                attribution_id=job.attribution_id,
                metadata=dict(job.metadata),
            )
        return cls(
            job_id=job.job_id,
            succeeded=False,
            stage=job.failed_stage or job.stage,
            error=job.error_message,
        )

    def as_dict(self) -> dict[str, Any]:
        if self.succeeded:
            return {
                "success": True,
                "job_id": self.job_id,
                "stage": self.stage.value,
                "token_id": self.token_id,
                "transaction_ref": self.transaction_ref,
                "network": self.network,
                "storage_id": self.storage_id,
                "storage_url": self.storage_url,
                "playback_id": self.playback_id,
                "attribution_id": self.attribution_id,
                "metadata": dict(self.metadata),
            }
        return {
            "success": False,
            "job_id": self.job_id,
            "stage": self.stage.value,
            "outcome": UploadStage.ERROR.value,
            "error": self.error,
        }


@dataclass(frozen=True, slots=True)
class UploadRecord:
    """Persisted snapshot of a job, rewritten at every stage transition."""

    job_id: str
    owner: str
    file_name: str | None
    stage: UploadStage
    progress: int
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    attribution_id: str | None = None
    storage_id: str | None = None
    storage_url: str | None = None
    playback_id: str | None = None
    metadata_uri: str | None = None
    token_id: str | None = None
    transaction_ref: str | None = None
    network: str | None = None
    failed_stage: UploadStage | None = None
    error: str | None = None
    updated_at: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())

    @classmethod
    def from_job(cls, job: UploadJob) -> "UploadRecord":
        return cls(
            job_id=job.job_id,
            owner=job.owner,
            file_name=job.file.name if job.file else None,
            stage=job.stage,
            progress=job.progress,
            metadata=dict(job.metadata),
            attribution_id=job.attribution_id,
            storage_id=job.storage.content_id if job.storage else None,
            storage_url=job.storage.url if job.storage else None,
            playback_id=job.stream.playback_id if job.stream else None,
            metadata_uri=job.metadata_document.url if job.metadata_document else None,
            token_id=job.token.token_id if job.token else None,
            transaction_ref=job.token.transaction_ref if job.token else None,
            network=job.token.network if job.token else None,
            failed_stage=job.failed_stage,
            error=job.error_message,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UploadRecord":
        values = dict(data)
        values["stage"] = UploadStage(values["stage"])
        if values.get("failed_stage"):
            values["failed_stage"] = UploadStage(values["failed_stage"])
        return cls(**values)

    def as_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "owner": self.owner,
            "file_name": self.file_name,
            "stage": self.stage.value,
            "progress": self.progress,
            "metadata": dict(self.metadata),
            "attribution_id": self.attribution_id,
            "storage_id": self.storage_id,
            "storage_url": self.storage_url,
            "playback_id": self.playback_id,
            "metadata_uri": self.metadata_uri,
            "token_id": self.token_id,
            "transaction_ref": self.transaction_ref,
            "network": self.network,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": self.error,
            "updated_at": self.updated_at,
        }
