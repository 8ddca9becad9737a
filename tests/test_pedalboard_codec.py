from __future__ import annotations

from beatschain.infrastructure.pedalboard_codec import decode_audio_bytes

from conftest import make_wav_bytes


def test_decode_wav_bytes_returns_channel_first_audio() -> None:
    audio, sample_rate = decode_audio_bytes(make_wav_bytes(duration_seconds=0.5), suffix=".wav")

    assert sample_rate == 48_000
    assert audio.shape == (2, 24_000)


def test_decode_limits_to_leading_section() -> None:
    audio, _ = decode_audio_bytes(make_wav_bytes(duration_seconds=0.5), suffix=".wav", max_seconds=0.25)

    assert audio.shape[-1] == 12_000
