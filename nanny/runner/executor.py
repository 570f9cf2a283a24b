"""
Nanny Command Executor.

Runs a command spec to completion with live output passthrough.
Requires Python 3.11+.
"""

import os
import subprocess
import time
from typing import IO, Any

import psutil

from nanny.errors import ExecutorBusyError
from nanny.runner.modes import (
    CommandOutcome,
    CommandSpec,
    CycleResult,
    ScriptMode,
    SplitMode,
)
from nanny.shutdown import ShutdownToken
from nanny.utils.logger import LoggerMixin


class CommandExecutor(LoggerMixin):
    """
    Runs ScriptMode and SplitMode specs.

    Child stdout/stderr are inherited from this process unless streams
    are given, so output shows up as it is produced. Failures are
    recorded in the returned CycleResult and never raised.
    """

    def __init__(
        self,
        interpreter: str,
        *,
        shutdown: ShutdownToken | None = None,
        stdout: IO[Any] | None = None,
        stderr: IO[Any] | None = None,
        kill_grace: float = 2.0,
        wait_step: float = 0.1,
    ) -> None:
        """
        Initialize the executor.

        Args:
            interpreter: Interpreter that receives scripts on stdin
            shutdown: Token checked while a child is running
            stdout: Stream for child stdout (None inherits ours)
            stderr: Stream for child stderr (None inherits ours)
            kill_grace: Seconds between terminate and kill on shutdown
            wait_step: Seconds between shutdown checks while waiting
        """
        self._interpreter = interpreter
        self._shutdown = shutdown
        self._stdout = stdout
        self._stderr = stderr
        self._kill_grace = kill_grace
        self._wait_step = wait_step
        self._busy = False

    @property
    def interpreter(self) -> str:
        return self._interpreter

    def run(self, spec: CommandSpec) -> CycleResult:
        """
        Run a command spec and wait for it to finish.

        Args:
            spec: ScriptMode or SplitMode

        Returns:
            CycleResult with one outcome per spawned process

        Raises:
            ExecutorBusyError: If called while a previous run is in flight
        """
        if self._busy:
            raise ExecutorBusyError("a command run is already in progress")

        self._busy = True
        try:
            if isinstance(spec, ScriptMode):
                result = self._run_script(spec)
            elif isinstance(spec, SplitMode):
                result = self._run_split(spec)
            else:
                raise TypeError(f"unsupported command spec: {type(spec).__name__}")
        finally:
            self._busy = False

        self.log.info(
            "cycle_finished",
            succeeded=result.succeeded,
            commands=len(result.outcomes),
            failures=len(result.failures),
            interrupted=result.interrupted,
        )
        return result

    def _run_script(self, spec: ScriptMode) -> CycleResult:
        result = CycleResult()
        if self._shutdown_requested():
            result.interrupted = True
            return result

        outcome, interrupted = self._spawn(
            [self._interpreter],
            command=self._interpreter,
            # argv text may carry surrogate-escaped bytes
            input=os.fsencode(spec.script),
        )
        result.outcomes.append(outcome)
        result.interrupted = interrupted
        return result

    def _run_split(self, spec: SplitMode) -> CycleResult:
        result = CycleResult()
        for line in spec.commands:
            argv = line.split()
            if not argv:
                continue
            if self._shutdown_requested():
                result.interrupted = True
                break

            outcome, interrupted = self._spawn(argv, command=line)
            result.outcomes.append(outcome)
            if interrupted:
                result.interrupted = True
                break
            if spec.stop_on_failure and not outcome.succeeded:
                self.log.info("sequence_aborted", command=line)
                break
        return result

    def _spawn(
        self,
        argv: list[str],
        command: str,
        input: bytes | None = None,
    ) -> tuple[CommandOutcome, bool]:
        """
        Spawn one process and wait for it.

        Returns:
            The outcome and whether the wait was cut short by shutdown
        """
        outcome = CommandOutcome(command=command)
        start = time.perf_counter()

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
                stdout=self._stdout,
                stderr=self._stderr,
            )
        except OSError as e:
            outcome.error = e.strerror or str(e)
            outcome.duration = time.perf_counter() - start
            self.log.info("spawn_failed", command=command, error=outcome.error)
            return outcome, False

        with proc:
            interrupted = self._wait(proc, input)

        outcome.duration = time.perf_counter() - start
        if interrupted:
            outcome.error = "interrupted by shutdown"
            self.log.debug("command_interrupted", command=command, pid=proc.pid)
            return outcome, True

        outcome.returncode = proc.returncode
        if outcome.returncode != 0:
            self.log.info(
                "command_failed",
                command=command,
                returncode=outcome.returncode,
                duration=round(outcome.duration, 3),
            )
        else:
            self.log.debug(
                "command_succeeded",
                command=command,
                duration=round(outcome.duration, 3),
            )
        return outcome, False

    def _wait(self, proc: subprocess.Popen, input: bytes | None) -> bool:
        """Feed input and wait for exit, checking for shutdown in between."""
        pending = input
        while True:
            try:
                proc.communicate(pending, timeout=self._wait_step)
                return False
            except subprocess.TimeoutExpired:
                # communicate() keeps unsent input across retries
                pending = None
            if self._shutdown_requested():
                self._terminate(proc)
                return True

    def _shutdown_requested(self) -> bool:
        return self._shutdown is not None and self._shutdown.requested

    def _terminate(self, proc: subprocess.Popen) -> None:
        """Stop a child and everything it spawned."""
        try:
            parent = psutil.Process(proc.pid)
            family = parent.children(recursive=True) + [parent]
        except psutil.NoSuchProcess:
            return

        for p in family:
            try:
                p.terminate()
            except psutil.NoSuchProcess:
                pass

        _, alive = psutil.wait_procs(family, timeout=self._kill_grace)
        for p in alive:
            try:
                p.kill()
            except psutil.NoSuchProcess:
                pass
        proc.wait()
