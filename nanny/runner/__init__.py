"""
Nanny Runner Package.

Command specs and their execution.
Requires Python 3.11+.
"""

from nanny.runner.executor import CommandExecutor
from nanny.runner.modes import (
    CommandOutcome,
    CommandSpec,
    CycleResult,
    ScriptMode,
    SplitMode,
    build_command_spec,
)

__all__ = [
    "CommandExecutor",
    "CommandOutcome",
    "CommandSpec",
    "CycleResult",
    "ScriptMode",
    "SplitMode",
    "build_command_spec",
]
