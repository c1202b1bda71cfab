# Save this file as: s2s_client/audio/chunk.py

from dataclasses import dataclass

import numpy as np


@dataclass
class AudioChunk:
    """Represents a chunk of audio data streamed to a session"""

    index: int                             # Sequence index within its source, starts at 0
    samples: np.ndarray                    # Mono PCM samples (int16)
    sample_rate: int                       # Sampling rate (typically 16000)

    @property
    def duration_ms(self) -> float:
        return len(self.samples) / self.sample_rate * 1000

    @property
    def pcm_bytes(self) -> bytes:
        """Little-endian 16-bit linear PCM, as sent on the wire"""
        return self.samples.astype('<i2', copy=False).tobytes()


def frames_per_chunk(sample_rate: int, chunk_duration_ms: int) -> int:
    return max(1, int(sample_rate * chunk_duration_ms / 1000))


def float_to_int16(audio: np.ndarray) -> np.ndarray:
    """Convert float samples in [-1, 1] to int16"""
    clipped = np.clip(audio, -1.0, 1.0)
    return (clipped * 32767).astype(np.int16)
