"""Domain event contracts for upload workflows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True, slots=True)
class DomainEvent:
    """Base domain event emitted by application services."""

    correlation_id: str
    payload_summary: dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


@dataclass(frozen=True, slots=True)
class UploadProgressed(DomainEvent):
    """An upload job entered a new stage."""


@dataclass(frozen=True, slots=True)
class StageFallbackApplied(DomainEvent):
    """A best-effort stage failed and a placeholder value was substituted."""


@dataclass(frozen=True, slots=True)
class UploadCompleted(DomainEvent):
    """An upload job reached the completed state with a minted token."""


@dataclass(frozen=True, slots=True)
class UploadFailed(DomainEvent):
    """An upload job terminated in the error state."""
