"""Command-line interface for termfix."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from typing import cast

from . import __version__
from .config import AppConfig, Personality
from .errors import TermfixError
from .suggest.models import Invocation
from .suggest.orchestrator import NO_COMMAND_MESSAGE, SuggestionOrchestrator

LOGGER = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Only these, and only ahead of the command, belong to termfix itself.
TERMFIX_OPTIONS = frozenset({"-h", "--help", "--version", "--debug"})
END_OF_OPTIONS = "--"

_STANDARD_RECORD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class CLIArgs(argparse.Namespace):
    debug: bool
    command: list[str]


class ExtraFieldsFormatter(logging.Formatter):
    """Append the ``extra=`` payload of a record as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_")
        }
        if not extras:
            return formatted
        fields = " ".join(f"{key}={value!r}" for key, value in sorted(extras.items()))
        return f"{formatted} {fields}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termfix",
        description="Explain and fix shell commands that could not be found",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log request and execution details to stderr.",
    )
    parser.add_argument(
        "command",
        nargs="*",
        help="The unresolved command line, as passed by the shell hook",
    )
    return parser


def split_argv(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Separate leading termfix options from the unresolved command.

    The first token that is not a termfix option starts the command, even
    when it looks like a flag (``-lah``, ``--verison``). A ``--`` ends the
    options explicitly and is dropped.
    """
    tokens = list(argv)
    for index, token in enumerate(tokens):
        if token == END_OF_OPTIONS:
            return tokens[:index], tokens[index + 1 :]
        if token not in TERMFIX_OPTIONS:
            return tokens[:index], tokens[index:]
    return tokens, []


def configure_logging(*, debug: bool) -> None:
    """Send log records to stderr; quiet unless asked otherwise."""
    if debug:
        level = logging.DEBUG
    else:
        level_name = os.getenv("TERMFIX_LOG_LEVEL", "WARNING").strip().upper()
        level = logging.getLevelName(level_name)
        if not isinstance(level, int):
            level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ExtraFieldsFormatter(LOG_FORMAT))
    root_logger.addHandler(handler)


def main(argv: Sequence[str] | None = None) -> int:
    options, command = split_argv(sys.argv[1:] if argv is None else argv)
    args = cast(CLIArgs, build_parser().parse_args(options))
    configure_logging(debug=args.debug)

    if not command:
        print(NO_COMMAND_MESSAGE)
        return 0
    invocation = Invocation.from_argv(command)

    try:
        config = AppConfig.load()
        personality = Personality.load()
        orchestrator = SuggestionOrchestrator(config, personality)
        return orchestrator.handle(invocation)
    except TermfixError as exc:
        LOGGER.debug("suggestion_cycle_failed", extra={"error_type": type(exc).__name__})
        print(f"termfix: error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
