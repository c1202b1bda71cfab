# Save this file as: s2s_client/session/base.py

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from s2s_client.audio.chunk import AudioChunk
from s2s_client.pipeline.config import SessionConfig


@dataclass(frozen=True)
class StreamInfo:
    """Identity of the audio a session is opened for"""
    name: str
    sample_rate: int
    channels: int = 1


@dataclass
class SessionResult:
    """One unit received from the translation service"""
    text: Optional[str] = None
    is_final: bool = True
    audio: bytes = b''


class StreamingSession(ABC):
    """
    Handle to one open bidirectional translation stream.
    """

    @abstractmethod
    def send(self, chunk: AudioChunk):
        """
        Queue one chunk for transmission. Chunks go out in call order.
        """
        pass

    @abstractmethod
    def finish(self):
        """
        Signal end-of-input. No send() may follow.
        """
        pass

    @abstractmethod
    def results(self) -> Iterator[SessionResult]:
        """
        Yield results in arrival order until the server ends the stream.
        """
        pass

    @abstractmethod
    def close(self):
        """
        Release the stream. Safe to call more than once and after errors.
        """
        pass


class StreamingService(ABC):
    """
    Opens sessions against a translation endpoint.
    Implementations must allow open() from several threads at once.
    """

    @abstractmethod
    def open(self, config: SessionConfig, stream: StreamInfo) -> StreamingSession:
        pass
