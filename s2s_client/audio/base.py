# Save this file as: s2s_client/audio/base.py

from abc import ABC, abstractmethod
from typing import Iterator

from s2s_client.audio.chunk import AudioChunk


class AudioSource(ABC):
    """
    Abstract base class for audio inputs.
    A source is opened once, iterated once and closed.
    """

    sample_rate: int = 0
    channels: int = 1

    @abstractmethod
    def open(self):
        """
        Acquire the input (decode headers, open the device).
        """
        pass

    @abstractmethod
    def chunks(self) -> Iterator[AudioChunk]:
        """
        Yield chunks in sequence-index order until end-of-stream or shutdown.
        """
        pass

    @abstractmethod
    def close(self):
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
