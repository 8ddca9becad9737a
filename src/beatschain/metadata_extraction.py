"""Best-effort audio metadata extraction.

Container headers are parsed in pure Python to recover duration, bitrate,
sample rate and channel layout. ID3v2 text frames supply title, artist,
genre and tempo where present. When no tempo tag exists the payload is
decoded and the tempo estimated with librosa's beat tracker.

Nothing in this module raises for malformed input: fields that cannot be
determined are simply omitted.
"""

from __future__ import annotations

import logging
import math
import struct
from pathlib import Path
from typing import Any

import librosa
import numpy as np

from beatschain.domain.models import ExtractedMetadata, FileDescriptor
from beatschain.infrastructure.pedalboard_codec import decode_audio_bytes
from beatschain.ingest_validation import normalize_content_type

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"

_TEMPO_ANALYSIS_SECONDS = 60.0
_TEMPO_HOP_SIZE = 512
_TEMPO_MIN_BPM = 70.0
_TEMPO_MAX_BPM = 180.0

_MP3_BITRATES_KBPS = (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 0)
_MP3_SAMPLE_RATES_HZ = (44_100, 48_000, 32_000, 0)
_ADTS_SAMPLE_RATES_HZ = (
    96_000, 88_200, 64_000, 48_000, 44_100, 32_000, 24_000, 22_050, 16_000, 12_000, 11_025, 8_000, 7_350,
)
_ID3_TEXT_FRAMES = {"TIT2": "title", "TPE1": "artist", "TCON": "genre", "TBPM": "bpm"}
_DECODABLE_SUFFIXES = {".wav", ".mp3", ".flac", ".m4a", ".aac", ".mp4"}


def extract_metadata(file: FileDescriptor, *, estimate_tempo: bool = True) -> ExtractedMetadata:
    """Inspect an already validated file and return whatever can be read."""

    raw_bytes = file.data
    fields: dict[str, Any] = {}
    try:
        fields.update(_parse_container(raw_bytes, normalize_content_type(file.content_type)))
        if raw_bytes.startswith(b"ID3"):
            fields.update({key: value for key, value in _parse_id3_tags(raw_bytes).items() if value is not None})
    except (ValueError, IndexError, struct.error) as error:
        logger.info("Audio header inspection failed.", extra={"file_name": file.name, "error": str(error)})

    if estimate_tempo and "bpm" not in fields:
        bpm = _estimate_tempo_from_payload(file)
        if bpm is not None:
            fields["bpm"] = bpm

    return ExtractedMetadata(
        title=fields.get("title") or Path(file.name).stem or None,
        artist=fields.get("artist") or UNKNOWN_ARTIST,
        duration=_rounded(fields.get("duration")),
        bitrate=fields.get("bitrate"),
        sample_rate=fields.get("sample_rate"),
        bpm=fields.get("bpm"),
        channels=fields.get("channels"),
        codec=fields.get("codec"),
        genre=fields.get("genre"),
    )


def _rounded(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return round(float(value), 3)


def _parse_container(raw_bytes: bytes, content_type: str) -> dict[str, Any]:
    if raw_bytes.startswith(b"RIFF") and raw_bytes[8:12] == b"WAVE":
        return _parse_wav(raw_bytes)
    if raw_bytes.startswith(b"fLaC"):
        return _parse_flac(raw_bytes)
    if raw_bytes[4:8] == b"ftyp":
        return _parse_mp4(raw_bytes)
    if content_type == "audio/aac" or _is_adts(raw_bytes):
        return _parse_adts(raw_bytes)
    if raw_bytes.startswith(b"ID3") or raw_bytes[:1] == b"\xFF":
        return _parse_mp3(raw_bytes)
    return {}


def _parse_wav(raw_bytes: bytes) -> dict[str, Any]:
    offset = 12
    sample_rate = 0
    channels = 0
    bits_per_sample = 0
    audio_format = 0
    data_size = 0
    while offset + 8 <= len(raw_bytes):
        chunk_id = raw_bytes[offset : offset + 4]
        chunk_size = int.from_bytes(raw_bytes[offset + 4 : offset + 8], "little")
        chunk_data_start = offset + 8
        if chunk_id == b"fmt " and chunk_size >= 16:
            audio_format, channels, sample_rate = struct.unpack(
                "<HHI", raw_bytes[chunk_data_start : chunk_data_start + 8]
            )
            bits_per_sample = int.from_bytes(raw_bytes[chunk_data_start + 14 : chunk_data_start + 16], "little")
        elif chunk_id == b"data":
            # Truncated uploads still report the declared size; clamp to what arrived.
            data_size = min(chunk_size, len(raw_bytes) - chunk_data_start)
        offset = chunk_data_start + chunk_size + (chunk_size % 2)

    fields: dict[str, Any] = {"codec": "pcm" if audio_format == 1 else "ieee_float" if audio_format == 3 else None}
    if sample_rate:
        fields["sample_rate"] = sample_rate
    if channels:
        fields["channels"] = channels
    if sample_rate and channels and bits_per_sample:
        bytes_per_second = sample_rate * channels * max(bits_per_sample // 8, 1)
        fields["bitrate"] = (bytes_per_second * 8) // 1000
        if data_size:
            fields["duration"] = data_size / bytes_per_second
    return {key: value for key, value in fields.items() if value is not None}


def _parse_flac(raw_bytes: bytes) -> dict[str, Any]:
    if len(raw_bytes) < 42:
        return {}
    block_type = raw_bytes[4] & 0x7F
    block_len = int.from_bytes(raw_bytes[5:8], "big")
    if block_type != 0 or block_len != 34:
        return {}
    packed = int.from_bytes(raw_bytes[18:26], "big")
    sample_rate = (packed >> 44) & 0xFFFFF
    channels = ((packed >> 41) & 0x7) + 1
    total_samples = packed & 0xFFFFFFFFF
    fields: dict[str, Any] = {"codec": "flac", "channels": channels}
    if sample_rate:
        fields["sample_rate"] = sample_rate
        if total_samples:
            fields["duration"] = total_samples / sample_rate
            fields["bitrate"] = int((len(raw_bytes) * 8) / (total_samples / sample_rate) / 1000)
    return fields


def _id3_tag_end(raw_bytes: bytes) -> int:
    if not raw_bytes.startswith(b"ID3") or len(raw_bytes) < 10:
        return 0
    tag_size = _synchsafe(raw_bytes[6:10])
    offset = 10 + tag_size
    if raw_bytes[5] & 0x10:
        offset += 10
    return offset


def _synchsafe(data: bytes) -> int:
    return ((data[0] & 0x7F) << 21) | ((data[1] & 0x7F) << 14) | ((data[2] & 0x7F) << 7) | (data[3] & 0x7F)


def _parse_mp3(raw_bytes: bytes) -> dict[str, Any]:
    offset = _id3_tag_end(raw_bytes)
    search_end = min(len(raw_bytes) - 4, offset + 8192)
    header_offset = offset
    while header_offset <= search_end:
        if raw_bytes[header_offset] == 0xFF and (raw_bytes[header_offset + 1] & 0xE0) == 0xE0:
            header = int.from_bytes(raw_bytes[header_offset : header_offset + 4], "big")
            version_id = (header >> 19) & 0x3
            layer = (header >> 17) & 0x3
            bitrate_idx = (header >> 12) & 0xF
            sample_idx = (header >> 10) & 0x3
            if version_id == 0x3 and layer == 0x1 and bitrate_idx not in (0, 0xF) and sample_idx != 0x3:
                break
        header_offset += 1
    else:
        return {}

    channel_mode = (header >> 6) & 0x3
    bitrate_kbps = _MP3_BITRATES_KBPS[bitrate_idx]
    audio_bytes = len(raw_bytes) - header_offset
    return {
        "codec": "mpeg1_layer3",
        "sample_rate": _MP3_SAMPLE_RATES_HZ[sample_idx],
        "channels": 1 if channel_mode == 0x3 else 2,
        "bitrate": bitrate_kbps,
        "duration": (audio_bytes * 8) / (bitrate_kbps * 1000),
    }


def _is_adts(raw_bytes: bytes) -> bool:
    return len(raw_bytes) >= 7 and raw_bytes[0] == 0xFF and (raw_bytes[1] & 0xF6) == 0xF0


def _parse_adts(raw_bytes: bytes) -> dict[str, Any]:
    if not _is_adts(raw_bytes):
        return {}
    sample_idx = (raw_bytes[2] >> 2) & 0xF
    channels = ((raw_bytes[2] & 0x1) << 2) | (raw_bytes[3] >> 6)
    fields: dict[str, Any] = {"codec": "aac"}
    if sample_idx < len(_ADTS_SAMPLE_RATES_HZ):
        fields["sample_rate"] = _ADTS_SAMPLE_RATES_HZ[sample_idx]
    if channels:
        fields["channels"] = channels
    return fields


def _parse_mp4(raw_bytes: bytes) -> dict[str, Any]:
    atom = raw_bytes.find(b"mvhd")
    if atom < 0:
        return {"codec": "mp4"}
    body = atom + 4
    version = raw_bytes[body]
    if version == 1:
        timescale, duration = struct.unpack(">IQ", raw_bytes[body + 20 : body + 32])
    else:
        timescale, duration = struct.unpack(">II", raw_bytes[body + 12 : body + 20])
    fields: dict[str, Any] = {"codec": "mp4"}
    if timescale and duration:
        fields["duration"] = duration / timescale
        fields["bitrate"] = int((len(raw_bytes) * 8) / fields["duration"] / 1000)
    return fields


def _parse_id3_tags(raw_bytes: bytes) -> dict[str, Any]:
    if len(raw_bytes) < 10:
        return {}
    major_version = raw_bytes[3]
    if major_version not in (3, 4):
        return {}
    tag_end = min(10 + _synchsafe(raw_bytes[6:10]), len(raw_bytes))
    offset = 10
    if raw_bytes[5] & 0x40 and offset + 4 <= tag_end:
        extended_size = int.from_bytes(raw_bytes[offset : offset + 4], "big")
        offset += extended_size if major_version == 3 else _synchsafe(raw_bytes[offset : offset + 4])

    tags: dict[str, Any] = {}
    while offset + 10 <= tag_end:
        frame_id = raw_bytes[offset : offset + 4]
        if frame_id == b"\x00\x00\x00\x00":
            break
        size_bytes = raw_bytes[offset + 4 : offset + 8]
        frame_size = _synchsafe(size_bytes) if major_version == 4 else int.from_bytes(size_bytes, "big")
        frame_start = offset + 10
        frame_end = frame_start + frame_size
        if frame_size <= 0 or frame_end > tag_end:
            break
        key = _ID3_TEXT_FRAMES.get(frame_id.decode("latin-1"))
        if key is not None:
            text = _decode_id3_text(raw_bytes[frame_start:frame_end])
            if text:
                tags[key] = _parse_bpm(text) if key == "bpm" else text
        offset = frame_end
    return tags


def _decode_id3_text(frame: bytes) -> str:
    if not frame:
        return ""
    encoding, payload = frame[0], frame[1:]
    codec = {0: "latin-1", 1: "utf-16", 2: "utf-16-be", 3: "utf-8"}.get(encoding, "latin-1")
    try:
        text = payload.decode(codec)
    except UnicodeDecodeError:
        return ""
    return text.replace("\x00", " ").strip()


def _parse_bpm(text: str) -> float | None:
    try:
        bpm = float(text)
    except ValueError:
        return None
    return bpm if math.isfinite(bpm) and bpm > 0 else None


def _estimate_tempo_from_payload(file: FileDescriptor) -> float | None:
    suffix = Path(file.name).suffix.lower()
    if suffix not in _DECODABLE_SUFFIXES:
        return None
    try:
        audio, sample_rate = decode_audio_bytes(file.data, suffix=suffix, max_seconds=_TEMPO_ANALYSIS_SECONDS)
    except Exception as error:  # noqa: BLE001
        logger.info("Tempo analysis skipped; payload could not be decoded.", extra={"file_name": file.name, "error": str(error)})
        return None
    return estimate_tempo_bpm(audio, sample_rate)


def estimate_tempo_bpm(
    audio: np.ndarray,
    sample_rate: int,
    *,
    min_bpm: float = _TEMPO_MIN_BPM,
    max_bpm: float = _TEMPO_MAX_BPM,
    hop_size: int = _TEMPO_HOP_SIZE,
) -> float | None:
    """Estimate tempo with librosa's beat tracker.

    Octave errors are folded back into ``[min_bpm, max_bpm]``. Silent or too
    short input yields ``None``.
    """

    samples = np.asarray(audio, dtype=np.float32)
    if samples.size == 0 or not np.all(np.isfinite(samples)):
        return None
    mono = librosa.to_mono(samples)
    if sample_rate <= 0 or mono.size < hop_size * 4 or not np.any(mono):
        return None

    tempo, _ = librosa.beat.beat_track(y=mono, sr=sample_rate, hop_length=hop_size)
    bpm = float(np.atleast_1d(tempo)[0])
    if not math.isfinite(bpm) or bpm <= 0:
        return None
    while bpm < min_bpm:
        bpm *= 2.0
    while bpm > max_bpm:
        bpm /= 2.0
    return round(bpm, 1)
