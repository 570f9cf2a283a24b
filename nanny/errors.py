"""
Nanny Exceptions.

Requires Python 3.11+.
"""


class NannyError(Exception):
    """Base class for all nanny errors."""


class ConfigurationError(NannyError):
    """
    Startup validation failed.

    The message is the user-facing diagnostic printed before exiting
    with status 1.
    """


class ExecutorBusyError(NannyError):
    """A command run was requested while another one is still in flight."""
