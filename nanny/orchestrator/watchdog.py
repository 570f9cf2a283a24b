"""
Nanny Stdin Watchdog.

Requests shutdown when standard input is closed. When nanny is started
as a detached process by another detached process nobody is left to
reap it, so stdin closing is treated as the signal to exit.
Requires Python 3.11+.
"""

import os
import sys
import threading
from typing import IO, Any

from nanny.shutdown import ShutdownToken
from nanny.utils.logger import LoggerMixin


class StdinWatchdog(LoggerMixin):
    """
    Reads stdin one byte at a time until end-of-stream.

    Only a real EOF requests shutdown. Bytes read are discarded; a read
    error stops the watchdog without requesting anything.
    """

    def __init__(self, shutdown: ShutdownToken, stream: IO[Any] | None = None) -> None:
        """
        Initialize the watchdog.

        Args:
            shutdown: Token to set on EOF
            stream: Stream to watch (defaults to sys.stdin)
        """
        self._shutdown = shutdown
        self._stream = stream if stream is not None else sys.stdin
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """Start watching in a daemon thread."""
        if self._thread is not None:
            return

        self._thread = threading.Thread(
            target=self._watch,
            name="nanny-stdin-watchdog",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _watch(self) -> None:
        try:
            fd = self._stream.fileno()
        except (AttributeError, OSError, ValueError) as e:
            self.log.debug("stdin_watchdog_disabled", error=str(e))
            return

        while True:
            try:
                data = os.read(fd, 1)
            except OSError as e:
                self.log.debug("stdin_read_failed", error=e.strerror)
                return
            if not data:
                self.log.debug("stdin_closed")
                self._shutdown.request("stdin closed")
                return
