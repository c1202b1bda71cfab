# Save this file as: s2s_client/audio/source.py

from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import numpy as np
import soundfile as sf

from s2s_client.audio.base import AudioSource
from s2s_client.audio.chunk import AudioChunk, frames_per_chunk
from s2s_client.audio.pacing import RealtimePacer
from s2s_client.exceptions import AudioFormatError
from s2s_client.pipeline.shutdown import CancellationToken
from s2s_client.utils.logger import logger

SUPPORTED_EXTENSIONS = ('.wav', '.flac', '.ogg', '.opus')
SUPPORTED_CHANNELS = (1,)


def list_audio_files(path: Union[str, Path]) -> List[Path]:
    """
    Expand an --audio_file value into a sorted list of files.
    A directory contributes every file with a supported audio extension.
    """
    root = Path(path)
    if root.is_dir():
        files = sorted(
            f for f in root.iterdir()
            if f.is_file() and f.suffix.lower() in SUPPORTED_EXTENSIONS
        )
        if not files:
            raise AudioFormatError(f"No audio files found in {root}")
        return files
    if root.is_file():
        return [root]
    raise AudioFormatError(f"Audio path does not exist: {root}")


class FileAudioSource(AudioSource):
    """
    Streams one or more audio files as fixed-duration int16 chunks,
    replaying the whole file list `iterations` times.
    """

    def __init__(
        self,
        paths: Sequence[Union[str, Path]],
        chunk_duration_ms: int,
        token: CancellationToken,
        iterations: int = 1,
        simulate_realtime: bool = False,
        pacer: Optional[RealtimePacer] = None
    ):
        self.paths = [Path(p) for p in paths]
        self.chunk_duration_ms = chunk_duration_ms
        self.token = token
        self.iterations = iterations
        self.simulate_realtime = simulate_realtime
        self.pacer = pacer
        self.sample_rate = 0
        self.channels = 1

    def open(self):
        for path in self.paths:
            info = self._probe(path)
            if self.sample_rate and info.samplerate != self.sample_rate:
                raise AudioFormatError(
                    f"{path}: sample rate {info.samplerate} differs from {self.sample_rate}"
                )
            self.sample_rate = info.samplerate
            self.channels = info.channels

    def _probe(self, path: Path):
        try:
            info = sf.info(str(path))
        except RuntimeError as e:
            raise AudioFormatError(f"Cannot decode {path}: {e}") from e

        if info.channels not in SUPPORTED_CHANNELS:
            raise AudioFormatError(f"{path}: unsupported channel count {info.channels}")
        if info.samplerate <= 0:
            raise AudioFormatError(f"{path}: invalid sample rate {info.samplerate}")
        return info

    def _read_blocks(self, path: Path) -> Iterator[np.ndarray]:
        frames = frames_per_chunk(self.sample_rate, self.chunk_duration_ms)
        try:
            for block in sf.blocks(str(path), blocksize=frames, dtype='int16', always_2d=True):
                yield block[:, 0]
        except RuntimeError as e:
            raise AudioFormatError(f"Error reading {path}: {e}") from e

    def chunks(self) -> Iterator[AudioChunk]:
        if not self.sample_rate:
            raise AudioFormatError("Source was not opened")

        pacer = self.pacer
        if self.simulate_realtime and pacer is None:
            pacer = RealtimePacer(self.chunk_duration_ms, self.token)

        index = 0
        for iteration in range(self.iterations):
            for path in self.paths:
                logger.debug(f"Streaming {path.name} (iteration {iteration + 1}/{self.iterations})")
                for block in self._read_blocks(path):
                    if self.token.cancelled:
                        return
                    if pacer is not None and not pacer.wait_for(index):
                        return
                    yield AudioChunk(index=index, samples=block, sample_rate=self.sample_rate)
                    index += 1

    def close(self):
        pass
