# Save this file as: s2s_client/pipeline/shutdown.py

import os
import signal
import threading
from typing import Callable, Optional

from s2s_client.utils.logger import logger


class CancellationToken:
    """
    Process-wide stop flag, passed explicitly to every audio source and driver.
    Checked cooperatively at chunk boundaries.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; returns True early if cancelled"""
        return self._event.wait(timeout)


class ShutdownController:
    """
    SIGINT handling: the first interrupt requests a graceful drain,
    the second one terminates the process on the spot.
    """

    def __init__(
        self,
        token: CancellationToken,
        force_exit: Callable[[int], None] = os._exit,
        signum: int = signal.SIGINT
    ):
        self.token = token
        self.force_exit = force_exit
        self.signum = signum
        self.interrupts = 0
        self._installed = False
        self._previous_handler: Optional[Callable] = None

    def install(self):
        self._previous_handler = signal.signal(self.signum, self.handle_signal)
        self._installed = True

    def uninstall(self):
        if self._installed:
            signal.signal(self.signum, self._previous_handler or signal.SIG_DFL)
            self._installed = False

    def handle_signal(self, signum=None, frame=None):
        if self.interrupts > 0:
            logger.warning("Force exit")
            self.force_exit(1)
            return

        self.interrupts += 1
        logger.info("Stopping capture")
        self.token.cancel()

    def __enter__(self):
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.uninstall()
