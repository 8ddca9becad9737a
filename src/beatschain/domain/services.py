"""Domain services that contain pure business rules."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from beatschain.domain.models import MetadataValue, StorageResult, StreamAsset
from beatschain.domain.policies import FALLBACK_MARKER

DEFAULT_TOKEN_NAME = "BeatsChain NFT"


def merge_metadata(
    extracted: Mapping[str, MetadataValue],
    overrides: Mapping[str, MetadataValue],
) -> dict[str, MetadataValue]:
    """Merge user overrides over extracted metadata; user keys always win."""

    merged = dict(extracted)
    merged.update(overrides)
    return merged


def fallback_identifier(kind: str | None = None) -> str:
    """Locally generated placeholder identifier carrying the fallback marker."""

    prefix = f"{FALLBACK_MARKER}{kind}-" if kind else FALLBACK_MARKER
    return f"{prefix}{uuid4().hex}"


def is_fallback_identifier(identifier: str | None) -> bool:
    return bool(identifier) and identifier.startswith(FALLBACK_MARKER)


def build_token_attributes(
    metadata: Mapping[str, MetadataValue],
    storage: StorageResult,
    stream: StreamAsset | None,
    content_type: str,
) -> dict[str, Any]:
    """Build the token metadata record submitted to the minting backend."""

    title = metadata.get("title") or DEFAULT_TOKEN_NAME
    artist = metadata.get("artist")
    if stream is not None and stream.playback_url and not is_fallback_identifier(stream.playback_id):
        animation_url = stream.playback_url
    else:
        animation_url = storage.url

    return {
        "name": title,
        "description": f"{artist} - {title}" if artist else str(title),
        "image": storage.url,
        "animation_url": animation_url,
        "attributes": [
            {"trait_type": "Artist", "value": artist},
            {"trait_type": "Genre", "value": metadata.get("genre")},
            {"trait_type": "BPM", "value": metadata.get("bpm")},
            {"trait_type": "Duration", "value": metadata.get("duration")},
            {"trait_type": "ISRC", "value": metadata.get("isrc") or "N/A"},
        ],
        "properties": {
            "files": [{"uri": storage.url, "type": content_type}],
            "category": "audio",
            "content_id": storage.content_id,
            "playback_id": stream.playback_id if stream is not None else None,
        },
    }
