# Save this file as: s2s_client/pipeline/outcome.py

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from s2s_client.session.base import SessionResult


class SessionState(str, Enum):
    IDLE = 'idle'
    OPENING = 'opening'
    STREAMING = 'streaming'
    DRAINING = 'draining'
    CLOSED = 'closed'
    FAILED = 'failed'


@dataclass(frozen=True)
class InputUnit:
    """
    One finite audio source, or the live-capture sentinel (path is None).
    """
    run_index: int
    path: Optional[Path] = None
    iteration: int = 1

    @property
    def is_live(self) -> bool:
        return self.path is None

    @property
    def name(self) -> str:
        if self.is_live:
            return 'microphone'
        return f"{self.path.name}#{self.iteration}"

    @classmethod
    def live_capture(cls) -> 'InputUnit':
        return cls(run_index=0)


@dataclass
class SessionOutcome:
    """Result of streaming one input unit"""
    unit: InputUnit
    state: SessionState = SessionState.IDLE
    skipped: bool = False
    error: Optional[str] = None
    elapsed_s: float = 0.0
    audio_s: float = 0.0
    chunks_sent: int = 0
    results: List[SessionResult] = field(default_factory=list)
    audio_path: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return self.state == SessionState.CLOSED

    @property
    def transcript(self) -> str:
        return " ".join(r.text.strip() for r in self.results if r.is_final and r.text).strip()

    @property
    def audio(self) -> bytes:
        return b"".join(r.audio for r in self.results if r.audio)


@dataclass
class RunReport:
    """All outcomes of a run, in input order"""
    outcomes: List[SessionOutcome]
    run_time_s: float = 0.0

    @property
    def started(self) -> List[SessionOutcome]:
        return [o for o in self.outcomes if not o.skipped]

    @property
    def failed(self) -> List[SessionOutcome]:
        return [o for o in self.started if not o.succeeded]

    @property
    def skipped(self) -> List[SessionOutcome]:
        return [o for o in self.outcomes if o.skipped]

    @property
    def succeeded(self) -> bool:
        return not self.failed

    @property
    def audio_s(self) -> float:
        return sum(o.audio_s for o in self.outcomes)

    @property
    def throughput(self) -> float:
        """Seconds of audio streamed per second of wall time"""
        if self.run_time_s <= 0:
            return 0.0
        return self.audio_s / self.run_time_s
