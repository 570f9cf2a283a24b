"""
Nanny Orchestrator Package.

Watch/run loop and the stdin watchdog.
Requires Python 3.11+.
"""

from nanny.orchestrator.loop import Orchestrator, OrchestratorState
from nanny.orchestrator.watchdog import StdinWatchdog

__all__ = ["Orchestrator", "OrchestratorState", "StdinWatchdog"]
