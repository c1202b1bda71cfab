import threading
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import numpy as np
import soundfile as sf

from s2s_client.exceptions import SessionError
from s2s_client.session.base import SessionResult, StreamingService, StreamingSession


def write_tone(
    path: Path,
    seconds: float = 0.5,
    sample_rate: int = 16000,
    channels: int = 1,
    freq: float = 440.0,
) -> Path:
    t = np.arange(int(seconds * sample_rate)) / sample_rate
    wave = (0.3 * np.sin(2 * np.pi * freq * t) * 32767).astype(np.int16)
    if channels > 1:
        wave = np.stack([wave] * channels, axis=1)
    sf.write(str(path), wave, sample_rate, subtype='PCM_16')
    return path


def write_garbage(path: Path) -> Path:
    path.write_bytes(b"RIFF-not-really-a-wave-file" * 8)
    return path


class FakeSession(StreamingSession):
    def __init__(self, service: "FakeStreamingService", name: str):
        self.service = service
        self.name = name
        self.sent: List[int] = []
        self.finished = False
        self.closed = False

    def send(self, chunk):
        if self.finished:
            raise SessionError("send after finish")
        if self.service.fail_send_at is not None and len(self.sent) == self.service.fail_send_at:
            raise SessionError("connection reset")
        if self.service.send_delay:
            time.sleep(self.service.send_delay)
        self.sent.append(chunk.index)
        if self.service.on_send:
            self.service.on_send(self, chunk)

    def finish(self):
        self.finished = True

    def results(self):
        yield SessionResult(text="partial", is_final=False)
        yield SessionResult(
            text=f"{self.name} translated",
            is_final=True,
            audio=b"\x01\x00" * len(self.sent),
        )

    def close(self):
        if not self.closed:
            self.closed = True
            self.service.release()


class FakeStreamingService(StreamingService):
    """In-memory stand-in for the translation endpoint"""

    def __init__(
        self,
        fail_open_for: Iterable[str] = (),
        fail_send_at: Optional[int] = None,
        send_delay: float = 0.0,
        on_send: Optional[Callable] = None,
    ):
        self.fail_open_for = tuple(fail_open_for)
        self.fail_send_at = fail_send_at
        self.send_delay = send_delay
        self.on_send = on_send

        self.sessions: List[FakeSession] = []
        self.streams = []
        self.open_now = 0
        self.max_open = 0
        self._lock = threading.Lock()

    def open(self, config, stream):
        if any(name in stream.name for name in self.fail_open_for):
            raise SessionError(f"open refused for {stream.name}")
        session = FakeSession(self, stream.name)
        with self._lock:
            self.sessions.append(session)
            self.streams.append(stream)
            self.open_now += 1
            self.max_open = max(self.max_open, self.open_now)
        return session

    def release(self):
        with self._lock:
            self.open_now -= 1
