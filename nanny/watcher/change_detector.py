"""
Nanny Change Detector.

Finds the most recent modification time under a path by walking the
tree and stat'ing every entry. Portable polling primitive, no OS
notification APIs.
Requires Python 3.11+.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from nanny.utils.logger import LoggerMixin


@dataclass(frozen=True)
class Snapshot:
    """Latest modification time seen under a watch target."""

    mtime: float
    path: Path | None = None

    EPOCH: ClassVar["Snapshot"]

    def is_newer_than(self, other: "Snapshot") -> bool:
        """Strict comparison; equal timestamps are not a change."""
        return self.mtime > other.mtime


Snapshot.EPOCH = Snapshot(mtime=0.0, path=None)


class ChangeDetector(LoggerMixin):
    """
    Computes the latest modification time under a root path.

    The scan is a max-reduction over st_mtime of the root and every
    file and directory below it, so traversal order does not matter.
    Entries that vanish or cannot be stat'ed mid-scan are skipped.
    The root itself is resolved through symlinks; anything below it is
    not, so link cycles cannot make the walk loop.
    """

    def __init__(self) -> None:
        """Initialize the change detector."""
        self._scan_count = 0

    @property
    def scan_count(self) -> int:
        """Number of entries stat'ed during the last scan."""
        return self._scan_count

    def latest_modification(self, root: Path) -> Snapshot:
        """
        Scan root and return the newest modification found.

        Args:
            root: File or directory to scan

        Returns:
            Snapshot of the newest entry, or Snapshot.EPOCH if nothing
            could be stat'ed
        """
        latest = Snapshot.EPOCH
        count = 0

        root_stat = self._stat(root, follow_symlinks=True)
        if root_stat is None:
            self._scan_count = 0
            return latest

        count += 1
        latest = Snapshot(mtime=root_stat.st_mtime, path=root)

        if os.path.isdir(root):
            for dirpath, dirnames, filenames in os.walk(
                root, onerror=self._on_walk_error, followlinks=False
            ):
                for name in (*dirnames, *filenames):
                    path = Path(dirpath) / name
                    st = self._stat(path)
                    if st is None:
                        continue
                    count += 1
                    if st.st_mtime > latest.mtime:
                        latest = Snapshot(mtime=st.st_mtime, path=path)

        self._scan_count = count
        return latest

    def _stat(self, path: Path, follow_symlinks: bool = False) -> os.stat_result | None:
        """Stat an entry, returning None if it cannot be read."""
        try:
            return os.stat(path, follow_symlinks=follow_symlinks)
        except OSError as e:
            self.log.debug("stat_failed", path=str(path), error=e.strerror)
            return None

    def _on_walk_error(self, error: OSError) -> None:
        self.log.debug("listdir_failed", path=error.filename, error=error.strerror)
