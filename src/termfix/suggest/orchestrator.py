"""Suggestion cycle for a command the shell could not resolve."""

from __future__ import annotations

import logging
import sys
import time
from typing import Protocol

from termfix.config import AppConfig, Personality
from termfix.llm.client import CompletionClient
from termfix.shell import CommandResult, create_shell_adapter
from termfix.shell.safety import select_classifier
from termfix.suggest.models import Invocation
from termfix.suggest.parser import parse_reply

# Tells the calling shell the original command really was not found.
COMMAND_NOT_FOUND_EXIT_CODE = 127

NO_COMMAND_MESSAGE = "No command provided."

SAFETY_INSTRUCTION = (
    "Never suggest commands that delete files recursively, escalate privileges,"
    " or write to raw disks. If no safe fix exists, omit the Command line."
)

LOGGER = logging.getLogger(__name__)


class CompletionBackend(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str: ...


class CommandRunner(Protocol):
    def execute(self, command: str, *, cwd: str | None = None) -> CommandResult: ...


def build_system_prompt(personality: Personality) -> str:
    return (
        f"You are {personality.name}, {personality.description}."
        " You help a terminal user who just typed a command the shell could not find."
        f" {SAFETY_INSTRUCTION}"
    )


def build_user_prompt(invocation: Invocation) -> str:
    """Describe the failed command and pin the two-line reply format."""
    return "\n".join(
        [
            f"User {invocation.user} in directory {invocation.working_directory}"
            f" ran a command the shell could not find: '{invocation.command_line}'.",
            "Explain what they most likely meant and suggest one corrected shell command.",
            "Respond in exactly this format:",
            "Explanation: <one or two sentences>",
            "Command: <a single shell command>",
            "Leave out the Command line entirely if no command would help.",
        ]
    )


class SuggestionOrchestrator:
    """Runs prompt, model call, parse, safety gate and optional execution."""

    def __init__(
        self,
        config: AppConfig,
        personality: Personality,
        *,
        client: CompletionBackend | None = None,
        shell: CommandRunner | None = None,
    ) -> None:
        self.config = config
        self.personality = personality
        self.client = client or CompletionClient.from_config(config)
        self.shell = shell or create_shell_adapter(
            config.shell, strict_safety=config.strict_safety
        )
        self.classifier = select_classifier(strict=config.strict_safety)

    def handle(self, invocation: Invocation) -> int:
        if not invocation.tokens:
            _print(NO_COMMAND_MESSAGE)
            return 0

        started = time.monotonic()
        reply = self.client.complete(
            build_system_prompt(self.personality),
            build_user_prompt(invocation),
        )
        suggestion = parse_reply(reply)
        LOGGER.debug(
            "suggestion_parsed",
            extra={
                "command_line": invocation.command_line,
                "has_command": suggestion.command is not None,
                "reply_chars": len(reply),
            },
        )

        _print(suggestion.explanation)
        # A blank "Command:" line is a parsed command with nothing to run.
        if suggestion.command is not None and suggestion.command != "":
            self._apply(suggestion.command, invocation)

        LOGGER.debug(
            "suggestion_cycle_finished",
            extra={"duration_seconds": round(time.monotonic() - started, 4)},
        )
        return COMMAND_NOT_FOUND_EXIT_CODE

    def _apply(self, command: str, invocation: Invocation) -> None:
        verdict = self.classifier(command)
        if not verdict.safe:
            LOGGER.info("suggested_command_rejected", extra={"reason": verdict.reason})
            _print(
                f"Warning: not running suggested command '{command}' ({verdict.reason}).",
                error=True,
            )
            return

        _print(f"Running: {command}")
        result = self.shell.execute(command, cwd=invocation.working_directory)
        if result.blocked:
            _print(
                f"Warning: not running suggested command '{command}' ({result.block_reason}).",
                error=True,
            )
        elif not result.executed:
            _print(f"Could not run command: {result.block_reason}", error=True)
        elif result.returncode < 0:
            _print(f"Command terminated by signal {-result.returncode}", error=True)
        elif result.returncode != 0:
            _print(f"Command exited with code {result.returncode}", error=True)


def _print(message: str, *, error: bool = False) -> None:
    print(message, file=sys.stderr if error else sys.stdout)
