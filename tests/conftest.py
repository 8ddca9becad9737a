import io
import wave

import numpy as np
import pytest

from beatschain.application.ports import ProviderError, UploadClients
from beatschain.domain.models import FileDescriptor, MintedToken, StorageResult, StreamAsset


def make_wav_bytes(*, duration_seconds: float = 1.0, sample_rate: int = 48_000, channels: int = 2) -> bytes:
    frames = int(duration_seconds * sample_rate)
    with io.BytesIO() as buffer:
        with wave.open(buffer, "wb") as wav:
            wav.setnchannels(channels)
            wav.setsampwidth(2)
            wav.setframerate(sample_rate)
            wav.writeframes(b"\x00\x00" * channels * frames)
        return buffer.getvalue()


def make_mp3_bytes(*, bitrate_kbps: int = 128, sample_rate: int = 44_100, seconds: float = 1.0) -> bytes:
    bitrate_idx = {32: 1, 64: 5, 128: 9, 192: 11, 256: 13, 320: 14}[bitrate_kbps]
    sample_idx = {44_100: 0, 48_000: 1, 32_000: 2}[sample_rate]
    header = 0
    header |= 0x7FF << 21
    header |= 0x3 << 19  # MPEG-1
    header |= 0x1 << 17  # Layer III
    header |= 0x1 << 16  # no CRC
    header |= bitrate_idx << 12
    header |= sample_idx << 10
    frame_len = int((144_000 * bitrate_kbps) / sample_rate)
    frame = header.to_bytes(4, "big") + b"\x00" * (frame_len - 4)
    frame_count = max(1, int(seconds * sample_rate / 1152))
    return frame * frame_count


def id3_text_frame(frame_id: str, text: str) -> bytes:
    body = b"\x03" + text.encode("utf-8")
    return frame_id.encode("ascii") + len(body).to_bytes(4, "big") + b"\x00\x00" + body


def make_id3_tag(frames: dict[str, str]) -> bytes:
    payload = b"".join(id3_text_frame(frame_id, text) for frame_id, text in frames.items())
    size = len(payload)
    synchsafe_size = bytes([(size >> 21) & 0x7F, (size >> 14) & 0x7F, (size >> 7) & 0x7F, size & 0x7F])
    return b"ID3" + b"\x03\x00" + b"\x00" + synchsafe_size + payload


def make_click_track(*, bpm: float = 120.0, seconds: float = 10.0, sample_rate: int = 22_050) -> np.ndarray:
    audio = np.zeros(int(seconds * sample_rate), dtype=np.float32)
    period = int(round(sample_rate * 60.0 / bpm))
    click = int(0.01 * sample_rate)
    for start in range(0, audio.size - click, period):
        audio[start : start + click] = 1.0
    return audio


class FakeStorage:
    def __init__(self, *, fail: bool = False, fail_documents: bool = False) -> None:
        self.fail = fail
        self.fail_documents = fail_documents
        self.calls: list[tuple[FileDescriptor, dict]] = []
        self.documents: list[tuple[str, dict]] = []

    async def store(self, file, metadata):
        self.calls.append((file, dict(metadata)))
        if self.fail:
            raise ProviderError("pinata", "HTTP 500", status_code=500)
        return StorageResult(content_id="bafy-test-cid", url="https://gateway.test/ipfs/bafy-test-cid")

    async def store_document(self, name, document):
        self.documents.append((name, dict(document)))
        if self.fail_documents:
            raise ProviderError("pinata", "HTTP 500", status_code=500)
        return StorageResult(content_id="bafy-meta-cid", url="https://gateway.test/ipfs/bafy-meta-cid")


class FakeTranscode:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def request_transcode(self, source_url, name):
        self.calls.append((source_url, name))
        if self.fail:
            raise ProviderError("livepeer", "HTTP 503", status_code=503)
        return StreamAsset(asset_id="asset-1", playback_id="play-1", playback_url="https://lvpr.tv/play-1")


class FakeMint:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, dict]] = []
        self.token_uris: list[str | None] = []

    async def mint(self, recipient, token_metadata, token_uri=None):
        self.calls.append((recipient, dict(token_metadata)))
        self.token_uris.append(token_uri)
        if self.fail:
            raise ProviderError("mint-backend", "HTTP 500", status_code=500)
        return MintedToken(token_id="token-42", transaction_ref="0xabc", network="solana-devnet")


class FakeAttribution:
    def __init__(
        self,
        *,
        campaign_id: str | None = "campaign-7",
        fail: bool = False,
        fail_notify: bool = False,
        fail_revenue: bool = False,
        fail_events: bool = False,
    ) -> None:
        self.campaign_id = campaign_id
        self.fail_notify = fail or fail_notify
        self.fail_revenue = fail or fail_revenue
        self.fail_events = fail or fail_events
        self.notifications: list[tuple[str, str, dict]] = []
        self.revenue: list[tuple[str, str]] = []
        self.events: list[tuple[str, str, str]] = []

    async def notify(self, event_type, user_id, metadata):
        self.notifications.append((event_type, user_id, dict(metadata)))
        if self.fail_notify:
            raise ProviderError("attribution", "HTTP 502", status_code=502)
        return self.campaign_id

    async def track_revenue(self, attribution_id, token_id):
        self.revenue.append((attribution_id, token_id))
        if self.fail_revenue:
            raise ProviderError("attribution", "HTTP 502", status_code=502)

    async def track_event(self, event_type, attribution_id, error):
        self.events.append((event_type, attribution_id, error))
        if self.fail_events:
            raise ProviderError("attribution", "HTTP 502", status_code=502)


class FailingRecords:
    def __init__(self) -> None:
        self.attempts = 0

    async def save(self, record):
        self.attempts += 1
        raise ProviderError("record-store", "bucket unavailable")

    async def get(self, job_id):
        raise ProviderError("record-store", "bucket unavailable")


class RecordingPublisher:
    def __init__(self) -> None:
        self.events = []

    def publish(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def fakes():
    storage = FakeStorage()
    transcode = FakeTranscode()
    mint = FakeMint()
    attribution = FakeAttribution()
    clients = UploadClients(storage=storage, transcode=transcode, mint=mint, attribution=attribution)
    return {
        "clients": clients,
        "storage": storage,
        "transcode": transcode,
        "mint": mint,
        "attribution": attribution,
    }
