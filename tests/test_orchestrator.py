"""
Tests for Orchestrator.

Requires Python 3.11+.
"""

from pathlib import Path

import pytest

from nanny.orchestrator.loop import Orchestrator, OrchestratorState
from nanny.runner.modes import ScriptMode
from nanny.shutdown import ShutdownToken
from nanny.watcher.change_detector import ChangeDetector
from nanny.watcher.poller import Poller

from conftest import FakeClock, RecordingExecutor, touch


def make_orchestrator(
    target: Path,
    executor: RecordingExecutor,
    clock: FakeClock,
    shutdown: ShutdownToken,
) -> Orchestrator:
    detector = ChangeDetector()
    return Orchestrator(
        target=target,
        spec=ScriptMode("echo modified"),
        executor=executor,  # type: ignore[arg-type]
        shutdown=shutdown,
        detector=detector,
        poller=Poller(detector, interval=1.0, clock=clock),
    )


class TestOrchestrator:
    """Test cases for the watch/run loop."""

    def test_no_change_no_run(self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        executor = RecordingExecutor()
        orchestrator = make_orchestrator(watched_file, executor, fake_clock, shutdown)
        fake_clock.schedule(None, None, None)

        assert orchestrator.run_forever() == 0
        assert executor.calls == []
        assert orchestrator.cycles == 0

    def test_single_change_single_run(self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        executor = RecordingExecutor()
        orchestrator = make_orchestrator(watched_file, executor, fake_clock, shutdown)
        fake_clock.schedule(None, lambda: touch(watched_file, 10), None, None)

        assert orchestrator.run_forever() == 0
        assert executor.calls == [ScriptMode("echo modified")]

    def test_each_change_runs_once(self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        executor = RecordingExecutor()
        orchestrator = make_orchestrator(watched_file, executor, fake_clock, shutdown)
        fake_clock.schedule(
            lambda: touch(watched_file, 10),
            None,
            lambda: touch(watched_file, 20),
            lambda: touch(watched_file, 30),
            None,
        )

        orchestrator.run_forever()

        assert len(executor.calls) == 3
        assert orchestrator.cycles == 3

    def test_directory_nested_change(self, watched_tree: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        executor = RecordingExecutor()
        orchestrator = make_orchestrator(watched_tree, executor, fake_clock, shutdown)
        fake_clock.schedule(lambda: touch(watched_tree / "foo" / "bar" / "deep.txt", 10))

        orchestrator.run_forever()

        assert len(executor.calls) == 1

    def test_changes_made_by_command_do_not_retrigger(
        self, watched_tree: Path, fake_clock: FakeClock, shutdown: ShutdownToken
    ):
        """The reference is retaken after the run, so the command's own writes are ignored."""
        output = watched_tree / "build.out"
        executor = RecordingExecutor(on_run=lambda: (output.write_text("built\n"), touch(output, 60)))
        orchestrator = make_orchestrator(watched_tree, executor, fake_clock, shutdown)
        fake_clock.schedule(lambda: touch(watched_tree / "top.txt", 10), None, None)

        orchestrator.run_forever()

        assert len(executor.calls) == 1

    def test_state_is_running_during_run(self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        seen: list[OrchestratorState] = []
        executor = RecordingExecutor(on_run=lambda: seen.append(orchestrator.state))
        orchestrator = make_orchestrator(watched_file, executor, fake_clock, shutdown)
        fake_clock.schedule(lambda: touch(watched_file, 10))

        orchestrator.run_forever()

        assert seen == [OrchestratorState.RUNNING]
        assert orchestrator.state == OrchestratorState.WATCHING

    def test_run_cycle_returns_result(self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        executor = RecordingExecutor()
        orchestrator = make_orchestrator(watched_file, executor, fake_clock, shutdown)
        fake_clock.schedule(lambda: touch(watched_file, 10))

        result = orchestrator.run_cycle()

        assert result is not None
        assert result.succeeded

    def test_run_cycle_returns_none_on_shutdown(
        self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken
    ):
        executor = RecordingExecutor()
        orchestrator = make_orchestrator(watched_file, executor, fake_clock, shutdown)
        shutdown.request("stdin closed")

        assert orchestrator.run_cycle() is None
        assert orchestrator.run_forever() == 0
        assert executor.calls == []

    def test_default_poller_uses_one_second(self, watched_file: Path, shutdown: ShutdownToken):
        orchestrator = Orchestrator(
            target=watched_file,
            spec=ScriptMode("true"),
            executor=RecordingExecutor(),  # type: ignore[arg-type]
            shutdown=shutdown,
        )
        assert orchestrator._poller.interval == 1.0

    def test_detector_follows_poller(self, watched_file: Path, fake_clock: FakeClock, shutdown: ShutdownToken):
        poller = Poller(ChangeDetector(), clock=fake_clock)
        orchestrator = Orchestrator(
            target=watched_file,
            spec=ScriptMode("true"),
            executor=RecordingExecutor(),  # type: ignore[arg-type]
            shutdown=shutdown,
            poller=poller,
        )
        fake_clock.schedule(lambda: touch(watched_file, 10))

        orchestrator.run_cycle()

        assert orchestrator._detector is poller.detector
        assert poller.detector.scan_count == 1

    def test_mismatched_detector_is_rejected(self, watched_file: Path, shutdown: ShutdownToken):
        with pytest.raises(ValueError):
            Orchestrator(
                target=watched_file,
                spec=ScriptMode("true"),
                executor=RecordingExecutor(),  # type: ignore[arg-type]
                shutdown=shutdown,
                detector=ChangeDetector(),
                poller=Poller(ChangeDetector()),
            )
