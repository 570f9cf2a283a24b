"""
Nanny Shutdown Token.

Cancellation flag shared by the watch loop, the command executor and
the stdin watchdog.
Requires Python 3.11+.
"""

import threading


class ShutdownToken:
    """
    One-shot shutdown signal.

    Any thread may request shutdown; every blocking wait in the
    application goes through wait() so it wakes up as soon as the
    request is made.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: str | None = None

    def request(self, reason: str) -> None:
        """Request shutdown. Only the first reason is kept."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def requested(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def wait(self, timeout: float | None = None) -> bool:
        """
        Block until shutdown is requested or the timeout elapses.

        Returns:
            True if shutdown was requested
        """
        return self._event.wait(timeout)
