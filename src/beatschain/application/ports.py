"""Application ports implemented by external service adapters."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from beatschain.domain.events import DomainEvent
from beatschain.domain.models import FileDescriptor, MetadataValue, MintedToken, StorageResult, StreamAsset


class ProviderError(RuntimeError):
    """Raised by adapters when an external provider call fails."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.status_code = status_code


class StorageClient(Protocol):
    """Content-addressed storage provider."""

    async def store(self, file: FileDescriptor, metadata: Mapping[str, MetadataValue]) -> StorageResult:
        """Persist file bytes and return their content identifier and URL."""

    async def store_document(self, name: str, document: Mapping[str, Any]) -> StorageResult:
        """Persist a JSON document, such as the token metadata, and return its locator."""


class TranscodeClient(Protocol):
    """Streaming/transcoding provider."""

    async def request_transcode(self, source_url: str, name: str) -> StreamAsset:
        """Start transcoding and return the identifiers of the initiating call."""


class MintClient(Protocol):
    """Token minting backend."""

    async def mint(
        self,
        recipient: str,
        token_metadata: Mapping[str, Any],
        token_uri: str | None = None,
    ) -> MintedToken:
        """Submit a mint request and return the minted token."""


class AttributionClient(Protocol):
    """Campaign attribution and analytics endpoint."""

    async def notify(self, event_type: str, user_id: str, metadata: Mapping[str, MetadataValue]) -> str | None:
        """Send an upload event and return the attribution identifier, if any."""

    async def track_revenue(self, attribution_id: str, token_id: str) -> None:
        """Record revenue for a completed, attributed upload."""

    async def track_event(self, event_type: str, attribution_id: str, error: str) -> None:
        """Record an analytics event for an attributed upload."""


class EventPublisher(Protocol):
    def publish(self, event: DomainEvent) -> None:
        """Publish one upload lifecycle event."""


class NullEventPublisher:
    """Discards events; the default when no sink is wired in."""

    def publish(self, event: DomainEvent) -> None:  # noqa: ARG002
        return None


class HealthProbe(Protocol):
    async def check(self) -> bool:
        """Return whether the probed service is healthy."""


@dataclass(frozen=True, slots=True)
class UploadClients:
    """One adapter per external capability, selected by configuration."""

    storage: StorageClient
    transcode: TranscodeClient
    mint: MintClient
    attribution: AttributionClient
