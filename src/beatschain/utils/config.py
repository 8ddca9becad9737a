from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "BEATSCHAIN_"


class PinataConfig(BaseModel):
    endpoint: str = "https://api.pinata.cloud/pinning/pinFileToIPFS"
    json_endpoint: str = "https://api.pinata.cloud/pinning/pinJSONToIPFS"
    gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    api_key: str | None = None
    secret_api_key: str | None = None


class MinIOConfig(BaseModel):
    endpoint: str = "minio:9000"
    access_key: str = "minioadmin"
    secret_key: str = "minioadmin"
    bucket: str = "beatschain-uploads"
    object_prefix: str = "audio"
    secure: bool = False
    region: str | None = None
    url_expiry_hours: int = Field(24, ge=1, le=24 * 7)


class LivepeerConfig(BaseModel):
    endpoint: str = "https://livepeer.studio/api"
    api_key: str | None = None
    playback_base_url: str = "https://lvpr.tv"


class MintConfig(BaseModel):
    endpoint: str = "http://localhost:3001/api/mint"
    api_key: str | None = None
    network: str = "solana-devnet"


class AttributionConfig(BaseModel):
    endpoint: str = "https://n8n.beatschain.app/webhook/campaign-event"
    revenue_endpoint: str = "http://localhost:3001/api/campaigns/track-revenue"
    analytics_endpoint: str = "http://localhost:3001/api/analytics/track"
    platform: str = "extension"
    revenue_amount: float = Field(1.25, ge=0.0)


class HealthCheckConfig(BaseModel):
    url: str = "http://localhost:3001"
    interval_seconds: float = Field(300.0, gt=0.0)
    timeout_seconds: float = Field(10.0, gt=0.0)


class RecordStoreConfig(BaseModel):
    backend: Literal["memory", "minio"] = "memory"
    object_prefix: str = "records"

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class OrchestratorConfig(BaseModel):
    storage_provider: Literal["pinata", "minio"] = "pinata"
    pinata: PinataConfig = Field(default_factory=PinataConfig)
    minio: MinIOConfig = Field(default_factory=MinIOConfig)
    livepeer: LivepeerConfig = Field(default_factory=LivepeerConfig)
    mint: MintConfig = Field(default_factory=MintConfig)
    attribution: AttributionConfig = Field(default_factory=AttributionConfig)
    health_check: HealthCheckConfig = Field(default_factory=HealthCheckConfig)
    records: RecordStoreConfig = Field(default_factory=RecordStoreConfig)
    request_timeout_seconds: float = Field(30.0, gt=0.0)
    mint_timeout_seconds: float = Field(120.0, gt=0.0)

    @field_validator("storage_provider", mode="before")
    @classmethod
    def _normalize_provider(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value


def load_orchestrator_config(path: Path) -> OrchestratorConfig:
    data = _load_config_data(path)
    return OrchestratorConfig.model_validate(data)


# Environment variable -> (section, field); section None means top level.
_ENV_FIELDS: dict[str, tuple[str | None, str]] = {
    "STORAGE_PROVIDER": (None, "storage_provider"),
    "REQUEST_TIMEOUT_SECONDS": (None, "request_timeout_seconds"),
    "MINT_TIMEOUT_SECONDS": (None, "mint_timeout_seconds"),
    "PINATA_ENDPOINT": ("pinata", "endpoint"),
    "PINATA_GATEWAY_URL": ("pinata", "gateway_url"),
    "PINATA_API_KEY": ("pinata", "api_key"),
    "PINATA_SECRET_KEY": ("pinata", "secret_api_key"),
    "S3_ENDPOINT": ("minio", "endpoint"),
    "S3_ACCESS_KEY": ("minio", "access_key"),
    "S3_SECRET_KEY": ("minio", "secret_key"),
    "S3_BUCKET": ("minio", "bucket"),
    "S3_SECURE": ("minio", "secure"),
    "S3_REGION": ("minio", "region"),
    "LIVEPEER_ENDPOINT": ("livepeer", "endpoint"),
    "LIVEPEER_API_KEY": ("livepeer", "api_key"),
    "MINT_ENDPOINT": ("mint", "endpoint"),
    "MINT_API_KEY": ("mint", "api_key"),
    "MINT_NETWORK": ("mint", "network"),
    "ATTRIBUTION_ENDPOINT": ("attribution", "endpoint"),
    "REVENUE_ENDPOINT": ("attribution", "revenue_endpoint"),
    "ANALYTICS_ENDPOINT": ("attribution", "analytics_endpoint"),
    "PLATFORM": ("attribution", "platform"),
    "HEALTH_CHECK_URL": ("health_check", "url"),
    "HEALTH_CHECK_INTERVAL_SECONDS": ("health_check", "interval_seconds"),
    "RECORD_STORE": ("records", "backend"),
}


def orchestrator_config_from_env(environ: Mapping[str, str] | None = None) -> OrchestratorConfig:
    """Build configuration from ``BEATSCHAIN_*`` environment variables."""

    environ = os.environ if environ is None else environ
    data: dict[str, dict[str, str] | str] = {}
    for suffix, (section, field_name) in _ENV_FIELDS.items():
        value = environ.get(f"{ENV_PREFIX}{suffix}")
        if value is None or value == "":
            continue
        if section is None:
            data[field_name] = value
        else:
            data.setdefault(section, {})[field_name] = value  # type: ignore[union-attr]

    config_path = environ.get(f"{ENV_PREFIX}CONFIG")
    if config_path:
        base = _load_config_data(Path(config_path))
        data = _deep_merge(base, data)
    return OrchestratorConfig.model_validate(data)


def _deep_merge(base: dict, overrides: dict) -> dict:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_config_data(path: Path) -> dict:
    if path.suffix.lower() in {".yaml", ".yml"}:
        import yaml

        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)
