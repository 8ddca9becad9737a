"""Campaign attribution adapter posting to the event webhook and revenue API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

import httpx

from beatschain.domain.models import MetadataValue
from beatschain.infrastructure.http_client import request_json
from beatschain.utils.config import AttributionConfig

PROVIDER = "attribution"


@dataclass(frozen=True, slots=True)
class WebhookAttributionClient:
    config: AttributionConfig
    timeout_seconds: float = 30.0
    transport: httpx.AsyncBaseTransport | None = None

    async def notify(self, event_type: str, user_id: str, metadata: Mapping[str, MetadataValue]) -> str | None:
        payload = await request_json(
            PROVIDER,
            "POST",
            self.config.endpoint,
            timeout=self.timeout_seconds,
            transport=self.transport,
            json={
                "event_type": event_type,
                "platform": self.config.platform,
                "user_id": user_id,
                "metadata": {**metadata, "timestamp": datetime.now(tz=timezone.utc).isoformat()},
            },
        )
        campaign_id = payload.get("campaignId")
        return str(campaign_id) if campaign_id else None

    async def track_revenue(self, attribution_id: str, token_id: str) -> None:
        await request_json(
            PROVIDER,
            "POST",
            self.config.revenue_endpoint,
            timeout=self.timeout_seconds,
            transport=self.transport,
            json={
                "type": "upload_complete",
                "amount": self.config.revenue_amount,
                "metadata": {
                    "campaignId": attribution_id,
                    "tokenId": token_id,
                    "platform": self.config.platform,
                },
            },
        )

    async def track_event(self, event_type: str, attribution_id: str, error: str) -> None:
        await request_json(
            PROVIDER,
            "POST",
            self.config.analytics_endpoint,
            timeout=self.timeout_seconds,
            transport=self.transport,
            json={"type": event_type, "campaignId": attribution_id, "error": error},
        )
