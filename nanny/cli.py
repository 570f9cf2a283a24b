"""
Nanny Command Line Interface.

Watches a file or directory and reruns commands whenever it changes.
Requires Python 3.11+.

Usage:
    nanny <file/dir> <commands>
"""

import argparse
import os
import sys
from pathlib import Path
from typing import NoReturn

from pydantic import ValidationError

from nanny.errors import ConfigurationError
from nanny.orchestrator.loop import Orchestrator
from nanny.orchestrator.watchdog import StdinWatchdog
from nanny.runner.executor import CommandExecutor
from nanny.runner.modes import build_command_spec
from nanny.shutdown import ShutdownToken
from nanny.utils.config import Settings, get_settings
from nanny.utils.logger import configure_logging, get_logger
from nanny.watcher.change_detector import ChangeDetector
from nanny.watcher.poller import Poller


USAGE = """Usage: nanny <file/dir> <commands>

Examples:

    nanny . "make; echo 'rinse, repeat'"
    nanny README.md "markdown README.md > temp.html; open temp.html"
"""

EXIT_USAGE = 1
EXIT_INTERRUPTED = 130


class UsageError(Exception):
    """Wrong command line arguments."""


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that leaves reporting to the caller."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def _printable(message: str) -> str:
    """Show undecodable argv bytes as backslash escapes instead of failing."""
    return message.encode("utf-8", "surrogateescape").decode("utf-8", "backslashreplace")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="nanny", add_help=False)
    parser.add_argument("path", help="file or directory to watch")
    parser.add_argument("commands", help="commands to run when path changes")
    return parser


def parse_args(argv: list[str]) -> argparse.Namespace:
    """
    Parse exactly two positional arguments.

    Everything is positional, so command text starting with a dash is
    taken literally.

    Raises:
        UsageError: On the wrong number of arguments
    """
    return _build_parser().parse_args(["--", *argv])


def validate_target(raw: str) -> Path:
    """
    Check that the watch target exists.

    Raises:
        ConfigurationError: With "<path>: <os error detail>"
    """
    try:
        os.stat(raw)
    except OSError as e:
        raise ConfigurationError(f"{raw}: {e.strerror or e}") from e
    return Path(raw)


def load_settings() -> Settings:
    """
    Resolve settings from the environment.

    Raises:
        ConfigurationError: If a NANNY_* variable has an invalid value
    """
    try:
        return get_settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def build_orchestrator(
    target: Path,
    commands: str,
    settings: Settings,
    shutdown: ShutdownToken,
) -> Orchestrator:
    """Wire detector, poller, executor and orchestrator from settings."""
    interpreter = settings.require_interpreter()
    spec = build_command_spec(
        commands,
        mode=settings.runner.mode,
        separator=settings.runner.separator,
        stop_on_failure=settings.runner.stop_on_failure,
    )
    detector = ChangeDetector()
    poller = Poller(detector, interval=settings.watcher.poll_interval)
    executor = CommandExecutor(
        interpreter,
        shutdown=shutdown,
        kill_grace=settings.runner.kill_grace,
    )
    return Orchestrator(
        target=target,
        spec=spec,
        executor=executor,
        shutdown=shutdown,
        detector=detector,
        poller=poller,
    )


def run(argv: list[str] | None = None) -> int:
    """
    Validate arguments and environment, then watch forever.

    Returns:
        Process exit status
    """
    if argv is None:
        argv = sys.argv[1:]

    try:
        args = parse_args(argv)
    except UsageError:
        print(USAGE)
        return EXIT_USAGE

    try:
        target = validate_target(args.path)
        settings = load_settings()
        shutdown = ShutdownToken()
        orchestrator = build_orchestrator(target, args.commands, settings, shutdown)
    except ConfigurationError as e:
        print(_printable(str(e)))
        return EXIT_USAGE

    configure_logging()
    logger = get_logger("nanny.cli")
    logger.debug(
        "starting",
        target=str(target),
        interpreter=settings.shell,
        mode=settings.runner.mode,
        interval=settings.watcher.poll_interval,
    )

    StdinWatchdog(shutdown).start()

    try:
        return orchestrator.run_forever()
    except KeyboardInterrupt:
        shutdown.request("interrupted")
        return EXIT_INTERRUPTED


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
