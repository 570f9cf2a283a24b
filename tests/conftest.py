"""
Nanny Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import os
import shutil
import time
from collections import deque
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from nanny.runner.modes import CommandSpec, CycleResult, CommandOutcome
from nanny.shutdown import ShutdownToken
from nanny.utils.config import get_settings
from nanny.watcher.change_detector import ChangeDetector


class FakeClock:
    """
    Clock that runs one scheduled action per sleep instead of waiting.

    When the schedule is exhausted it requests shutdown, so loops under
    test always terminate.
    """

    def __init__(self) -> None:
        self.sleeps: list[float] = []
        self._actions: deque[Callable[[], None] | None] = deque()

    def schedule(self, *actions: Callable[[], None] | None) -> None:
        """Queue actions; None means a tick where nothing happens."""
        self._actions.extend(actions)

    def sleep(self, seconds: float, shutdown: ShutdownToken) -> bool:
        self.sleeps.append(seconds)
        if self._actions:
            action = self._actions.popleft()
            if action is not None:
                action()
        else:
            shutdown.request("clock exhausted")
        return shutdown.requested


class RecordingExecutor:
    """Executor stand-in that records each run."""

    def __init__(self, on_run: Callable[[], None] | None = None) -> None:
        self.calls: list[CommandSpec] = []
        self._on_run = on_run

    def run(self, spec: CommandSpec) -> CycleResult:
        self.calls.append(spec)
        if self._on_run is not None:
            self._on_run()
        return CycleResult(outcomes=[CommandOutcome(command="recorded", returncode=0)])


def touch(path: Path, offset: float) -> None:
    """Set path's mtime to now + offset seconds."""
    stamp = time.time() + offset
    os.utime(path, (stamp, stamp))


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Settings are cached per process; reset around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def detector() -> ChangeDetector:
    """Create a change detector instance."""
    return ChangeDetector()


@pytest.fixture
def shutdown() -> ShutdownToken:
    return ShutdownToken()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sh() -> str:
    """Path to a POSIX shell."""
    path = shutil.which("sh")
    if path is None:
        pytest.skip("no POSIX shell available")
    return path


@pytest.fixture
def watched_file(tmp_path: Path) -> Path:
    """Create an empty file to watch."""
    file_path = tmp_path / "watched_file"
    file_path.touch()
    return file_path


@pytest.fixture
def watched_tree(tmp_path: Path) -> Path:
    """
    Create a small directory tree to watch.

    Layout:
        tree/top.txt
        tree/foo/bar/deep.txt
        tree/empty/
    """
    root = tmp_path / "tree"
    (root / "foo" / "bar").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "top.txt").write_text("top\n")
    (root / "foo" / "bar" / "deep.txt").write_text("deep\n")

    # Pin every mtime in the past so tests control what is newest
    past = time.time() - 3600
    for path in [root, *root.rglob("*")]:
        os.utime(path, (past, past))
    return root
