# Save this file as: s2s_client/pipeline/driver.py

import time
from typing import Any, Callable, Dict, Optional

from s2s_client.audio.base import AudioSource
from s2s_client.exceptions import S2SClientError, SessionError
from s2s_client.pipeline.config import SessionConfig
from s2s_client.pipeline.output import ArtifactWriter
from s2s_client.pipeline.outcome import InputUnit, SessionOutcome, SessionState
from s2s_client.pipeline.shutdown import CancellationToken
from s2s_client.session.base import SessionResult, StreamInfo, StreamingService, StreamingSession
from s2s_client.utils.logger import logger

SourceFactory = Callable[[InputUnit], AudioSource]
EventSink = Callable[[Dict[str, Any]], None]


class SessionDriver:
    """
    Runs one input unit through one streaming session:
    IDLE -> OPENING -> STREAMING -> DRAINING -> CLOSED, or FAILED from any state.
    """

    def __init__(
        self,
        unit: InputUnit,
        config: SessionConfig,
        service: StreamingService,
        source_factory: SourceFactory,
        token: CancellationToken,
        writer: Optional[ArtifactWriter] = None,
        event_sink: Optional[EventSink] = None,
    ):
        self.unit = unit
        self.config = config
        self.service = service
        self.source_factory = source_factory
        self.token = token
        self.writer = writer
        self.event_sink = event_sink
        self.state = SessionState.IDLE

    def _emit(self, event_type: str, **payload):
        if self.event_sink:
            try:
                self.event_sink({"type": event_type, "unit": self.unit, **payload})
            except Exception as e:
                logger.debug(f"Event sink error: {e}")

    def _transition(self, state: SessionState):
        logger.debug(f"[{self.unit.name}] {self.state.value} -> {state.value}")
        self.state = state
        self._emit("state", state=state)

    def run(self) -> SessionOutcome:
        outcome = SessionOutcome(unit=self.unit)
        started = time.monotonic()
        session: Optional[StreamingSession] = None

        try:
            self._transition(SessionState.OPENING)
            with self.source_factory(self.unit) as source:
                stream = StreamInfo(
                    name=self.unit.name,
                    sample_rate=source.sample_rate,
                    channels=source.channels
                )
                session = self.service.open(self.config, stream)

                self._transition(SessionState.STREAMING)
                self._stream(source, session, outcome)

            self._transition(SessionState.DRAINING)
            session.finish()
            for result in session.results():
                outcome.results.append(result)
                self._report(result)

            self._release(session)
            session = None

            if self.writer is not None:
                outcome.audio_path = self.writer.write(outcome)
            self._transition(SessionState.CLOSED)

        except S2SClientError as e:
            outcome.error = f"{type(e).__name__}: {e}"
            logger.error(f"[{self.unit.name}] {outcome.error}")
            self._transition(SessionState.FAILED)

        except Exception:
            self._transition(SessionState.FAILED)
            raise

        finally:
            if session is not None:
                self._release(session)
            outcome.state = self.state
            outcome.elapsed_s = time.monotonic() - started

        return outcome

    def _stream(self, source: AudioSource, session: StreamingSession, outcome: SessionOutcome):
        last_index = -1
        for chunk in source.chunks():
            if chunk.index <= last_index:
                raise SessionError(f"Chunk {chunk.index} arrived after chunk {last_index}")

            session.send(chunk)
            last_index = chunk.index
            outcome.chunks_sent += 1
            outcome.audio_s += chunk.duration_ms / 1000.0

            # Chunk boundary: stop feeding, but still drain what was sent
            if self.token.cancelled:
                logger.info(f"[{self.unit.name}] Shutdown requested, draining session")
                break

    def _report(self, result: SessionResult):
        if result.text:
            if result.is_final:
                print(f"[{self.unit.name}] {result.text}", flush=True)
                self._emit("transcript", text=result.text)
            else:
                logger.debug(f"[{self.unit.name}] partial: {result.text}")
        if result.audio:
            self._emit("audio", size=len(result.audio))

    def _release(self, session: StreamingSession):
        try:
            session.close()
        except S2SClientError as e:
            logger.warning(f"[{self.unit.name}] Error closing session: {e}")
