"""HTTP minting backend adapter."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from beatschain.application.ports import ProviderError
from beatschain.domain.models import MintedToken
from beatschain.infrastructure.http_client import request_json
from beatschain.utils.config import MintConfig

PROVIDER = "mint-backend"


@dataclass(frozen=True, slots=True)
class HttpMintClient:
    config: MintConfig
    timeout_seconds: float = 120.0
    transport: httpx.AsyncBaseTransport | None = None

    async def mint(
        self,
        recipient: str,
        token_metadata: Mapping[str, Any],
        token_uri: str | None = None,
    ) -> MintedToken:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        body: dict[str, Any] = {"recipient": recipient, "metadata": dict(token_metadata), "network": self.config.network}
        if token_uri is not None:
            body["tokenUri"] = token_uri
        payload = await request_json(
            PROVIDER,
            "POST",
            self.config.endpoint,
            timeout=self.timeout_seconds,
            transport=self.transport,
            headers=headers,
            json=body,
        )
        result = payload.get("result") if isinstance(payload.get("result"), dict) else payload
        token_id = _first_present(result, "tokenId", "token_id")
        transaction_ref = _first_present(result, "transactionHash", "transaction_ref")
        # Token id 0 is valid; only absent or blank values are rejected.
        if token_id is None or str(token_id) == "" or not transaction_ref:
            raise ProviderError(PROVIDER, "response did not include a token id and transaction reference")
        return MintedToken(
            token_id=str(token_id),
            transaction_ref=str(transaction_ref),
            network=result.get("network") or self.config.network,
        )


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None
