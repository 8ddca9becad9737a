"""IPFS storage adapter backed by the Pinata pinning API."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from beatschain.application.ports import ProviderError
from beatschain.domain.models import FileDescriptor, MetadataValue, StorageResult
from beatschain.infrastructure.http_client import request_json
from beatschain.utils.config import PinataConfig

PROVIDER = "pinata"


@dataclass(frozen=True, slots=True)
class PinataStorageClient:
    """Pin uploaded audio to IPFS and resolve it through the configured gateway."""

    config: PinataConfig
    timeout_seconds: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None

    async def store(self, file: FileDescriptor, metadata: Mapping[str, MetadataValue]) -> StorageResult:
        pinata_metadata = {
            "name": metadata.get("title") or file.name,
            "keyvalues": {
                key: metadata.get(key)
                for key in ("artist", "genre", "bpm")
                if metadata.get(key) is not None
            },
        }
        try:
            encoded_metadata = json.dumps(pinata_metadata, allow_nan=False)
        except (TypeError, ValueError) as error:
            raise ProviderError(PROVIDER, f"metadata is not JSON serialisable: {error}") from error
        payload = await request_json(
            PROVIDER,
            "POST",
            self.config.endpoint,
            timeout=self.timeout_seconds,
            transport=self.transport,
            headers=self._headers(),
            files={"file": (file.name, file.data, file.content_type)},
            data={"pinataMetadata": encoded_metadata},
        )
        return self._result(payload)

    async def store_document(self, name: str, document: Mapping[str, Any]) -> StorageResult:
        payload = await request_json(
            PROVIDER,
            "POST",
            self.config.json_endpoint,
            timeout=self.timeout_seconds,
            transport=self.transport,
            headers=self._headers(),
            json={"pinataContent": dict(document), "pinataMetadata": {"name": name}},
        )
        return self._result(payload)

    def _result(self, payload: dict[str, Any]) -> StorageResult:
        content_id = payload.get("IpfsHash")
        if not content_id:
            raise ProviderError(PROVIDER, "response did not include an IpfsHash")
        return StorageResult(content_id=content_id, url=f"{self.config.gateway_url.rstrip('/')}/{content_id}")

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.config.api_key:
            headers["pinata_api_key"] = self.config.api_key
        if self.config.secret_api_key:
            headers["pinata_secret_api_key"] = self.config.secret_api_key
        return headers
