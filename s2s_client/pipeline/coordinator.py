# Save this file as: s2s_client/pipeline/coordinator.py

import queue
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from s2s_client.pipeline.config import SessionConfig
from s2s_client.pipeline.driver import EventSink, SessionDriver, SourceFactory
from s2s_client.pipeline.output import ArtifactWriter
from s2s_client.pipeline.outcome import InputUnit, RunReport, SessionOutcome, SessionState
from s2s_client.pipeline.shutdown import CancellationToken
from s2s_client.session.base import StreamingService
from s2s_client.utils.logger import logger


def build_file_units(paths: Sequence[Path], num_iterations: int) -> List[InputUnit]:
    """One unit per file per iteration: every file of iteration 1, then iteration 2, ..."""
    units = []
    for iteration in range(1, num_iterations + 1):
        for path in paths:
            units.append(InputUnit(run_index=len(units), path=Path(path), iteration=iteration))
    return units


class ConcurrencyCoordinator:
    """
    Work queue over at most `parallelism` session slots.
    Each slot is one thread running one SessionDriver at a time; a slot picks
    the next unit as soon as its driver is CLOSED or FAILED.
    """

    def __init__(
        self,
        config: SessionConfig,
        service: StreamingService,
        source_factory: SourceFactory,
        token: CancellationToken,
        parallelism: int = 1,
        writer: Optional[ArtifactWriter] = None,
        event_sink: Optional[EventSink] = None,
        join_poll_s: float = 0.2,
    ):
        if parallelism < 1:
            raise ValueError(f"parallelism must be >= 1, got {parallelism}")
        self.config = config
        self.service = service
        self.source_factory = source_factory
        self.token = token
        self.parallelism = parallelism
        self.writer = writer
        self.event_sink = event_sink
        self.join_poll_s = join_poll_s

    def run(self, units: Sequence[InputUnit]) -> RunReport:
        started = time.monotonic()

        work: "queue.Queue[Tuple[int, InputUnit]]" = queue.Queue()
        for position, unit in enumerate(units):
            work.put((position, unit))

        slot_count = min(self.parallelism, len(units))
        slot_outcomes: List[List[Tuple[int, SessionOutcome]]] = [[] for _ in range(slot_count)]
        threads = [
            threading.Thread(
                target=self._slot_loop,
                args=(work, slot_outcomes[n]),
                name=f"Session_Slot_{n}",
                daemon=True,
            )
            for n in range(slot_count)
        ]

        logger.info(f"Streaming {len(units)} run(s) over {slot_count} parallel session(s)")
        for t in threads:
            t.start()

        # Short joins keep the main thread responsive to SIGINT
        for t in threads:
            while t.is_alive():
                t.join(timeout=self.join_poll_s)

        merged = sorted(
            (item for outcomes in slot_outcomes for item in outcomes),
            key=lambda item: item[0]
        )
        return RunReport(
            outcomes=[outcome for _, outcome in merged],
            run_time_s=time.monotonic() - started
        )

    def _slot_loop(self, work: "queue.Queue[Tuple[int, InputUnit]]", outcomes: List[Tuple[int, SessionOutcome]]):
        while True:
            try:
                position, unit = work.get_nowait()
            except queue.Empty:
                return

            if self.token.cancelled:
                logger.debug(f"[{unit.name}] Skipped, shutdown requested")
                outcomes.append((position, SessionOutcome(unit=unit, skipped=True)))
                continue

            outcomes.append((position, self._run_unit(unit)))

    def _run_unit(self, unit: InputUnit) -> SessionOutcome:
        driver = SessionDriver(
            unit=unit,
            config=self.config,
            service=self.service,
            source_factory=self.source_factory,
            token=self.token,
            writer=self.writer,
            event_sink=self.event_sink,
        )
        try:
            outcome = driver.run()
        except Exception as e:
            logger.exception(f"[{unit.name}] Unexpected error: {e}")
            return SessionOutcome(unit=unit, state=SessionState.FAILED, error=f"{type(e).__name__}: {e}")

        if outcome.succeeded:
            logger.info(f"[{unit.name}] Done in {outcome.elapsed_s:.2f}s, {outcome.chunks_sent} chunks sent")
        return outcome
