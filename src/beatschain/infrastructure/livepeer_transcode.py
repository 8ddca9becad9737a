"""Livepeer Studio transcoding adapter."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from beatschain.application.ports import ProviderError
from beatschain.domain.models import StreamAsset
from beatschain.infrastructure.http_client import request_json
from beatschain.utils.config import LivepeerConfig

PROVIDER = "livepeer"


@dataclass(frozen=True, slots=True)
class LivepeerTranscodeClient:
    """Request an asset import from a URL; does not wait for transcoding to finish."""

    config: LivepeerConfig
    timeout_seconds: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None

    async def request_transcode(self, source_url: str, name: str) -> StreamAsset:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        payload = await request_json(
            PROVIDER,
            "POST",
            f"{self.config.endpoint.rstrip('/')}/asset/import",
            timeout=self.timeout_seconds,
            transport=self.transport,
            headers=headers,
            json={"url": source_url, "name": name},
        )
        asset = payload.get("asset") if isinstance(payload.get("asset"), dict) else payload
        asset_id = asset.get("id")
        playback_id = asset.get("playbackId")
        if not asset_id or not playback_id:
            raise ProviderError(PROVIDER, "response did not include an asset id and playback id")
        return StreamAsset(
            asset_id=asset_id,
            playback_id=playback_id,
            playback_url=f"{self.config.playback_base_url.rstrip('/')}/{playback_id}",
        )
