"""HTTP health probe used by the scheduled health-check task."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HttpHealthProbe:
    """GET ``<base_url>/healthz`` and report whether it answered 2xx."""

    base_url: str
    timeout_seconds: float = 10.0
    path: str = "/healthz"
    transport: httpx.AsyncBaseTransport | None = None

    async def check(self) -> bool:
        url = f"{self.base_url.rstrip('/')}{self.path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.get(url)
        except httpx.HTTPError as error:
            logger.warning("Health probe request failed", extra={"url": url, "error": str(error)})
            return False
        return response.is_success
