"""Audio decode adapter backed by pedalboard."""

from __future__ import annotations

from pathlib import Path
from tempfile import NamedTemporaryFile

import numpy as np
from pedalboard.io import AudioFile


def decode_audio_bytes(
    payload: bytes,
    *,
    suffix: str,
    max_seconds: float | None = None,
) -> tuple[np.ndarray, int]:
    """Decode an in-memory upload, optionally only its leading section.

    The payload is spooled to a temporary file so the decoder can pick the
    format from ``suffix``.
    """

    with NamedTemporaryFile(suffix=suffix) as temp_file:
        temp_file.write(payload)
        temp_file.flush()
        with AudioFile(str(Path(temp_file.name)), "r") as audio_file:
            frames = audio_file.frames
            if max_seconds is not None:
                frames = min(frames, int(max_seconds * audio_file.samplerate))
            return audio_file.read(frames), int(audio_file.samplerate)
