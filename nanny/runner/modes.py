"""
Nanny Command Specs.

The two ways a command text can be run, plus per-run results.
Requires Python 3.11+.
"""

from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class ScriptMode:
    """Whole text handed to the interpreter on stdin."""

    script: str


@dataclass(frozen=True)
class SplitMode:
    """
    Independent command lines run one after another.

    Each line is split on whitespace: the first token is the
    executable, the rest are its arguments. No shell expansion or
    quoting.
    """

    commands: tuple[str, ...]
    stop_on_failure: bool = False


CommandSpec = ScriptMode | SplitMode


def build_command_spec(
    text: str,
    mode: Literal["script", "split"] = "script",
    separator: str = ";",
    stop_on_failure: bool = False,
) -> CommandSpec:
    """
    Build a command spec from raw command text.

    Args:
        text: Command text as given on the command line
        mode: "script" or "split"
        separator: Line separator for split mode
        stop_on_failure: Abort the split sequence on the first failure

    Returns:
        ScriptMode or SplitMode
    """
    if mode == "script":
        return ScriptMode(script=text)
    if mode == "split":
        commands = tuple(line.strip() for line in text.split(separator) if line.strip())
        return SplitMode(commands=commands, stop_on_failure=stop_on_failure)
    raise ValueError(f"unknown run mode: {mode!r}")


@dataclass
class CommandOutcome:
    """Result of one spawned process."""

    command: str
    returncode: int | None = None
    error: str | None = None
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


@dataclass
class CycleResult:
    """Outcomes of one executor run, in execution order."""

    outcomes: list[CommandOutcome] = field(default_factory=list)
    interrupted: bool = False

    @property
    def succeeded(self) -> bool:
        """True when every command ran and exited 0."""
        return not self.interrupted and all(o.succeeded for o in self.outcomes)

    @property
    def failures(self) -> list[CommandOutcome]:
        return [o for o in self.outcomes if not o.succeeded]
