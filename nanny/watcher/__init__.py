"""
Nanny Watcher Package.

Portable polling change detection.
Requires Python 3.11+.
"""

from nanny.watcher.change_detector import ChangeDetector, Snapshot
from nanny.watcher.poller import Clock, Poller, SystemClock

__all__ = ["ChangeDetector", "Snapshot", "Clock", "Poller", "SystemClock"]
