# Save this file as: s2s_client/audio/pacing.py

import time
from typing import Callable, Optional

from s2s_client.pipeline.shutdown import CancellationToken


class RealtimePacer:
    """
    Emulates live arrival of file audio.

    Chunk N becomes available at stream_start + N * chunk_duration on a
    monotonic clock. Deadlines are absolute, so a chunk that is already late
    goes out immediately and the lateness is not carried over to the chunks
    after it: delivery is never early, and may only be late by however long
    the caller itself took.
    """

    def __init__(
        self,
        chunk_duration_ms: int,
        token: Optional[CancellationToken] = None,
        clock: Callable[[], float] = time.monotonic,
        wait: Optional[Callable[[float], bool]] = None
    ):
        self.chunk_duration_s = chunk_duration_ms / 1000.0
        self.token = token
        self.clock = clock
        self._wait = wait or self._default_wait
        self.start_time: Optional[float] = None

    def _default_wait(self, seconds: float) -> bool:
        # True means the wait was cut short by shutdown
        if self.token is not None:
            return self.token.wait(seconds)
        time.sleep(seconds)
        return False

    def deadline(self, index: int) -> float:
        if self.start_time is None:
            self.start_time = self.clock()
        return self.start_time + index * self.chunk_duration_s

    def wait_for(self, index: int) -> bool:
        """
        Block until chunk `index` may be sent.
        Returns False if shutdown was requested while waiting.
        """
        deadline = self.deadline(index)
        while True:
            remaining = deadline - self.clock()
            if remaining <= 0:
                return True
            if self._wait(remaining):
                return False
