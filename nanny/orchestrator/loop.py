"""
Nanny Orchestrator.

The watch/run loop: wait for a change, run the commands, repeat.
Requires Python 3.11+.
"""

from enum import Enum
from pathlib import Path

from nanny.runner.executor import CommandExecutor
from nanny.runner.modes import CommandSpec, CycleResult
from nanny.shutdown import ShutdownToken
from nanny.utils.logger import LoggerMixin
from nanny.watcher.change_detector import ChangeDetector
from nanny.watcher.poller import Poller


class OrchestratorState(str, Enum):
    """Where the loop currently is."""

    WATCHING = "watching"
    RUNNING = "running"


class Orchestrator(LoggerMixin):
    """
    Alternates between watching the target and running the commands.

    The reference snapshot is retaken every time watching starts, so
    files touched by the command itself do not retrigger it once the
    command has exited. Runs until the shutdown token is set.
    """

    def __init__(
        self,
        target: Path,
        spec: CommandSpec,
        executor: CommandExecutor,
        shutdown: ShutdownToken,
        detector: ChangeDetector | None = None,
        poller: Poller | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            target: File or directory to watch
            spec: Commands to run on change
            executor: Executor that runs spec
            shutdown: Token that ends the loop
            detector: Change detector (defaults to the poller's)
            poller: Poller (defaults to a one-second poller over detector)

        Raises:
            ValueError: If detector and poller disagree on the detector
        """
        self._target = target
        self._spec = spec
        self._executor = executor
        self._shutdown = shutdown
        if poller is None:
            poller = Poller(detector or ChangeDetector())
        elif detector is not None and detector is not poller.detector:
            raise ValueError("detector must be the one the poller scans with")
        # reference and polls must come from the same detector
        self._poller = poller
        self._detector = poller.detector
        self._state = OrchestratorState.WATCHING
        self._cycles = 0

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def cycles(self) -> int:
        """Number of completed command runs."""
        return self._cycles

    def run_cycle(self) -> CycleResult | None:
        """
        Watch until the target changes, then run the commands once.

        Returns:
            The run's result, or None if shutdown ended the watch
        """
        self._state = OrchestratorState.WATCHING
        reference = self._detector.latest_modification(self._target)
        self.log.debug(
            "watching",
            target=str(self._target),
            reference=reference.mtime,
            newest=str(reference.path),
        )

        changed = self._poller.wait_for_change(self._target, reference, self._shutdown)
        if changed is None:
            return None

        self._state = OrchestratorState.RUNNING
        self.log.info("running_commands", trigger=str(changed.path), cycle=self._cycles + 1)
        try:
            result = self._executor.run(self._spec)
        finally:
            self._state = OrchestratorState.WATCHING

        self._cycles += 1
        return result

    def run_forever(self) -> int:
        """
        Loop until shutdown is requested.

        Returns:
            Process exit status (always 0)
        """
        self.log.info("orchestrator_started", target=str(self._target))
        while not self._shutdown.requested:
            self.run_cycle()

        self.log.info(
            "orchestrator_stopped",
            reason=self._shutdown.reason,
            cycles=self._cycles,
        )
        return 0
