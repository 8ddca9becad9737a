from __future__ import annotations

import numpy as np

from beatschain import metadata_extraction
from beatschain.domain.models import FileDescriptor
from beatschain.metadata_extraction import UNKNOWN_ARTIST, estimate_tempo_bpm, extract_metadata

from conftest import make_click_track, make_id3_tag, make_mp3_bytes, make_wav_bytes


def test_extract_wav_header_fields() -> None:
    file = FileDescriptor.from_bytes("beat.wav", "audio/wav", make_wav_bytes(duration_seconds=2.0, sample_rate=48_000))

    metadata = extract_metadata(file, estimate_tempo=False)

    assert metadata.duration == 2.0
    assert metadata.sample_rate == 48_000
    assert metadata.channels == 2
    assert metadata.bitrate == 1536
    assert metadata.codec == "pcm"


def test_extract_uses_placeholders_for_unreadable_payload() -> None:
    file = FileDescriptor.from_bytes("mystery.mp3", "audio/mpeg", b"not really audio at all")

    metadata = extract_metadata(file, estimate_tempo=False)

    assert metadata.title == "mystery"
    assert metadata.artist == UNKNOWN_ARTIST
    assert metadata.as_dict() == {"title": "mystery", "artist": UNKNOWN_ARTIST}


def test_extract_reads_id3_text_frames() -> None:
    tag = make_id3_tag({"TIT2": "Night Drive", "TPE1": "DJ Test", "TCON": "House", "TBPM": "124"})
    file = FileDescriptor.from_bytes("night.mp3", "audio/mpeg", tag + make_mp3_bytes(seconds=2.0))

    metadata = extract_metadata(file, estimate_tempo=False)

    assert metadata.title == "Night Drive"
    assert metadata.artist == "DJ Test"
    assert metadata.genre == "House"
    assert metadata.bpm == 124.0
    assert metadata.sample_rate == 44_100
    assert metadata.bitrate == 128
    assert metadata.codec == "mpeg1_layer3"


def test_extract_mp3_duration_from_bitrate() -> None:
    payload = make_mp3_bytes(bitrate_kbps=128, seconds=3.0)
    file = FileDescriptor.from_bytes("loop.mp3", "audio/mpeg", payload)

    metadata = extract_metadata(file, estimate_tempo=False)

    assert metadata.duration is not None
    assert abs(metadata.duration - (len(payload) * 8) / 128_000) < 0.01


def test_extract_adts_header() -> None:
    # ADTS: 44.1 kHz (index 4), stereo.
    header = bytes([0xFF, 0xF1, 0x50, 0x80, 0x00, 0x1F, 0xFC])
    file = FileDescriptor.from_bytes("clip.aac", "audio/aac", header + b"\x00" * 64)

    metadata = extract_metadata(file, estimate_tempo=False)

    assert metadata.codec == "aac"
    assert metadata.sample_rate == 44_100
    assert metadata.channels == 2


def test_extract_mp4_duration_from_mvhd() -> None:
    ftyp = (16).to_bytes(4, "big") + b"ftypM4A " + b"\x00\x00\x00\x00"
    mvhd_body = b"\x00" + b"\x00\x00\x00" + (0).to_bytes(4, "big") * 2 + (1000).to_bytes(4, "big") + (90_000).to_bytes(4, "big")
    mvhd = (8 + len(mvhd_body)).to_bytes(4, "big") + b"mvhd" + mvhd_body
    file = FileDescriptor.from_bytes("song.m4a", "audio/mp4", ftyp + mvhd + b"\x00" * 32)

    metadata = extract_metadata(file, estimate_tempo=False)

    assert metadata.duration == 90.0
    assert metadata.codec == "mp4"


def test_extract_estimates_tempo_from_decoded_audio(monkeypatch) -> None:
    click_track = make_click_track(bpm=120.0)
    monkeypatch.setattr(
        metadata_extraction,
        "decode_audio_bytes",
        lambda payload, suffix, max_seconds=None: (click_track, 22_050),
    )
    file = FileDescriptor.from_bytes("clicks.wav", "audio/wav", make_wav_bytes(duration_seconds=0.1))

    metadata = extract_metadata(file)

    assert metadata.bpm is not None
    assert 115.0 <= metadata.bpm <= 125.0


def test_extract_skips_tempo_when_decoding_fails(monkeypatch) -> None:
    def fail_decode(payload, suffix, max_seconds=None):
        raise RuntimeError("decoder unavailable")

    monkeypatch.setattr(metadata_extraction, "decode_audio_bytes", fail_decode)
    file = FileDescriptor.from_bytes("beat.wav", "audio/wav", make_wav_bytes(duration_seconds=0.1))

    metadata = extract_metadata(file)

    assert metadata.bpm is None
    assert "bpm" not in metadata.as_dict()


def test_estimate_tempo_returns_none_for_silence() -> None:
    assert estimate_tempo_bpm(np.zeros(22_050 * 5, dtype=np.float32), 22_050) is None


def test_estimate_tempo_handles_channel_first_audio() -> None:
    mono = make_click_track(bpm=100.0)
    stereo = np.stack([mono, mono])

    bpm = estimate_tempo_bpm(stereo, 22_050)

    assert bpm is not None
    assert 96.0 <= bpm <= 104.0


def test_extract_ignores_non_finite_id3_bpm() -> None:
    for raw_bpm in ("inf", "NaN", "-120"):
        tag = make_id3_tag({"TIT2": "Loop", "TBPM": raw_bpm})
        file = FileDescriptor.from_bytes("loop.mp3", "audio/mpeg", tag + make_mp3_bytes(seconds=1.0))

        metadata = extract_metadata(file, estimate_tempo=False)

        assert metadata.bpm is None
        assert "bpm" not in metadata.as_dict()


def test_estimate_tempo_returns_none_for_non_finite_samples() -> None:
    audio = make_click_track(bpm=120.0)
    audio[100] = np.nan

    assert estimate_tempo_bpm(audio, 22_050) is None
