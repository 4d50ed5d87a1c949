"""WAV encoding for raw TTS output and the scoped playable audio handle."""

import os
import struct
import tempfile
from pathlib import Path
from typing import Optional

from loguru import logger

SAMPLE_RATE = 24000
CHANNELS = 1
SAMPLE_WIDTH = 2  # 16-bit signed little-endian
WAV_HEADER_SIZE = 44


def encode_wav(pcm_data: bytes) -> bytes:
    """Wrap raw mono 16-bit PCM at 24 kHz in a canonical 44-byte WAV header.

    The PCM bytes are appended verbatim (no sample conversion, an odd
    trailing byte included), so the output is always
    ``44 + len(pcm_data)`` bytes long and identical for identical input.
    """
    data = bytes(pcm_data)
    block_align = CHANNELS * SAMPLE_WIDTH
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        WAV_HEADER_SIZE - 8 + len(data),
        b"WAVE",
        b"fmt ",
        16,  # PCM fmt chunk size
        1,  # PCM format tag
        CHANNELS,
        SAMPLE_RATE,
        SAMPLE_RATE * block_align,
        block_align,
        SAMPLE_WIDTH * 8,
        b"data",
        len(data),
    )
    return header + data


class AudioHandle:
    """A playable WAV file on disk that must be released exactly once."""

    def __init__(self, path: Path):
        self.path = path
        self._released = False

    @classmethod
    def create(cls, wav_data: bytes, directory: Optional[Path] = None) -> "AudioHandle":
        fd, name = tempfile.mkstemp(suffix=".wav", prefix="narration_", dir=directory)
        with os.fdopen(fd, "wb") as f:
            f.write(wav_data)
        logger.debug(f"Created audio handle {name} ({len(wav_data)} bytes)")
        return cls(Path(name))

    @property
    def released(self) -> bool:
        return self._released

    def read(self) -> bytes:
        if self._released:
            raise RuntimeError(f"Audio handle {self.path} was already released")
        return self.path.read_bytes()

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self.path.unlink(missing_ok=True)
        logger.debug(f"Released audio handle {self.path}")

    def __enter__(self) -> "AudioHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.release()
