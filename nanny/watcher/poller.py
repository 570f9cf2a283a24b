"""
Nanny Poller.

Timed polling on top of the change detector.
Requires Python 3.11+.
"""

from pathlib import Path
from typing import Protocol

from nanny.shutdown import ShutdownToken
from nanny.utils.logger import LoggerMixin
from nanny.watcher.change_detector import ChangeDetector, Snapshot


class Clock(Protocol):
    """Sleeps between polls. Tests substitute a fake one."""

    def sleep(self, seconds: float, shutdown: ShutdownToken) -> bool:
        """Sleep up to seconds; return True if shutdown was requested."""
        ...


class SystemClock:
    """Real-time clock that wakes early on shutdown."""

    def sleep(self, seconds: float, shutdown: ShutdownToken) -> bool:
        return shutdown.wait(seconds)


class Poller(LoggerMixin):
    """
    Blocks until something under a path is newer than a reference.

    Latency is bounded by the interval plus one scan.
    """

    def __init__(
        self,
        detector: ChangeDetector,
        interval: float = 1.0,
        clock: Clock | None = None,
    ) -> None:
        """
        Initialize the poller.

        Args:
            detector: Change detector used for each scan
            interval: Seconds to sleep between scans
            clock: Clock used for sleeping (defaults to SystemClock)
        """
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval}")
        self._detector = detector
        self._interval = interval
        self._clock = clock or SystemClock()

    @property
    def detector(self) -> ChangeDetector:
        return self._detector

    @property
    def interval(self) -> float:
        return self._interval

    def wait_for_change(
        self,
        root: Path,
        reference: Snapshot,
        shutdown: ShutdownToken,
    ) -> Snapshot | None:
        """
        Poll root until a scan is strictly newer than reference.

        Args:
            root: Watch target
            reference: Snapshot taken when watching began
            shutdown: Token that aborts the wait

        Returns:
            The newer snapshot, or None if shutdown was requested first
        """
        polls = 0
        while True:
            if self._clock.sleep(self._interval, shutdown):
                self.log.debug("poll_aborted", polls=polls)
                return None

            polls += 1
            current = self._detector.latest_modification(root)
            if current.is_newer_than(reference):
                self.log.debug(
                    "change_detected",
                    path=str(current.path),
                    mtime=current.mtime,
                    polls=polls,
                    entries=self._detector.scan_count,
                )
                return current
