"""Shared httpx request helper for provider adapters."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from beatschain.application.ports import ProviderError

logger = logging.getLogger(__name__)


async def request_json(
    provider: str,
    method: str,
    url: str,
    *,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None = None,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """Issue one request and return its JSON object body.

    Transport failures, non-2xx statuses and non-object bodies are raised as
    ``ProviderError`` so callers only handle one exception type.
    """

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.request(method, url, headers=headers, **kwargs)
    except httpx.HTTPError as error:
        raise ProviderError(provider, f"request to {url} failed: {error}") from error
    except (httpx.InvalidURL, ValueError, TypeError) as error:
        # Raised while building the request, e.g. a body that is not valid JSON.
        raise ProviderError(provider, f"could not build request to {url}: {error}") from error

    if response.is_error:
        logger.warning(
            "Provider returned an error status",
            extra={"provider": provider, "url": url, "status_code": response.status_code},
        )
        raise ProviderError(provider, f"HTTP {response.status_code} from {url}", status_code=response.status_code)

    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError as error:
        raise ProviderError(provider, f"invalid JSON from {url}", status_code=response.status_code) from error
    if not isinstance(payload, dict):
        raise ProviderError(provider, f"unexpected JSON payload from {url}", status_code=response.status_code)
    return payload
