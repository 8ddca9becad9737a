from __future__ import annotations

from beatschain.domain.models import StorageResult, StreamAsset
from beatschain.domain.services import (
    build_token_attributes,
    fallback_identifier,
    is_fallback_identifier,
    merge_metadata,
)


def test_merge_user_values_override_extracted() -> None:
    merged = merge_metadata({"title": "Y", "duration": 180}, {"title": "X"})

    assert merged == {"title": "X", "duration": 180}


def test_merge_keeps_user_value_even_when_empty_or_differently_typed() -> None:
    extracted = {"title": "Y", "bpm": 121.7, "artist": "Unknown Artist"}
    overrides = {"bpm": "128", "artist": "", "isrc": "US-ABC-24-00001"}

    merged = merge_metadata(extracted, overrides)

    for key, value in overrides.items():
        assert merged[key] == value
    assert merged["title"] == "Y"


def test_merge_does_not_mutate_inputs() -> None:
    extracted = {"title": "Y"}
    overrides = {"title": "X"}

    merge_metadata(extracted, overrides)

    assert extracted == {"title": "Y"}
    assert overrides == {"title": "X"}


def test_fallback_identifiers_carry_marker_and_are_unique() -> None:
    first = fallback_identifier()
    second = fallback_identifier("playback")

    assert first.startswith("local-")
    assert second.startswith("local-playback-")
    assert first != fallback_identifier()
    assert is_fallback_identifier(first)
    assert not is_fallback_identifier("bafy-real-cid")
    assert not is_fallback_identifier(None)


def test_token_attributes_prefer_stream_playback_url() -> None:
    storage = StorageResult(content_id="cid", url="https://gateway/ipfs/cid")
    stream = StreamAsset(asset_id="a", playback_id="p", playback_url="https://lvpr.tv/p")

    attributes = build_token_attributes(
        {"title": "X", "artist": "Artist", "genre": "House", "bpm": 124, "duration": 180.0},
        storage,
        stream,
        "audio/mpeg",
    )

    assert attributes["name"] == "X"
    assert attributes["description"] == "Artist - X"
    assert attributes["image"] == "https://gateway/ipfs/cid"
    assert attributes["animation_url"] == "https://lvpr.tv/p"
    traits = {item["trait_type"]: item["value"] for item in attributes["attributes"]}
    assert traits == {"Artist": "Artist", "Genre": "House", "BPM": 124, "Duration": 180.0, "ISRC": "N/A"}
    assert attributes["properties"]["files"] == [{"uri": "https://gateway/ipfs/cid", "type": "audio/mpeg"}]
    assert attributes["properties"]["category"] == "audio"


def test_token_attributes_fall_back_to_storage_url_for_placeholder_stream() -> None:
    storage = StorageResult(content_id="cid", url="https://gateway/ipfs/cid")
    stream = StreamAsset(asset_id="local-asset-1", playback_id="local-playback-1", fallback=True)

    attributes = build_token_attributes({}, storage, stream, "audio/wav")

    assert attributes["name"] == "BeatsChain NFT"
    assert attributes["animation_url"] == "https://gateway/ipfs/cid"


def test_token_attributes_ignore_playback_url_of_placeholder_asset() -> None:
    storage = StorageResult(content_id="cid", url="https://gateway/ipfs/cid")
    stream = StreamAsset(asset_id="local-asset-1", playback_id="local-playback-1", playback_url="https://lvpr.tv/x")

    attributes = build_token_attributes({"title": "X"}, storage, stream, "audio/wav")

    assert attributes["animation_url"] == "https://gateway/ipfs/cid"
