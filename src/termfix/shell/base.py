"""Base shell adapter primitives with safety guardrails."""

from __future__ import annotations

import abc
import logging
import re
import time
from dataclasses import dataclass

from .safety import Classifier, classify

LOGGER = logging.getLogger(__name__)

_SECRET_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(--?(?:password|token|secret|api[-_]?key)\s+)([^\s]+)",
        r"((?:password|token|secret|api[-_]?key)\s*=\s*)([^\s]+)",
    )
]


@dataclass(slots=True)
class CommandResult:
    """Result of a command execution; output streams are inherited, not captured."""

    command: str
    shell: str
    returncode: int
    duration_seconds: float = 0.0
    executed: bool = True
    blocked: bool = False
    block_reason: str | None = None


class ShellAdapter(abc.ABC):
    """Abstract adapter for shell-specific command execution."""

    def __init__(self, *, classifier: Classifier = classify) -> None:
        self.classifier = classifier

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Friendly shell adapter name."""

    @abc.abstractmethod
    def execute(self, command: str, *, cwd: str | None = None) -> CommandResult:
        """Execute a shell command and return a normalized result."""

    def enforce_guardrails(self, command: str) -> str | None:
        """Run the safety classifier and return a block reason when rejected."""
        verdict = self.classifier(command)
        if verdict.safe:
            return None
        return f"command blocked by safety policy: {verdict.reason}"

    def blocked_result(self, command: str, reason: str) -> CommandResult:
        return CommandResult(
            command=command,
            shell=self.name,
            returncode=126,
            executed=False,
            blocked=True,
            block_reason=reason,
        )

    def log_request(self, command: str, *, cwd: str | None) -> None:
        LOGGER.info(
            "command_request",
            extra={
                "shell": self.name,
                "command": self._sanitize_command(command),
                "cwd": cwd,
            },
        )

    def log_result(self, result: CommandResult) -> None:
        LOGGER.info(
            "command_result",
            extra={
                "shell": result.shell,
                "returncode": result.returncode,
                "duration_seconds": round(result.duration_seconds, 4),
                "executed": result.executed,
                "blocked": result.blocked,
            },
        )

    @staticmethod
    def monotonic_now() -> float:
        return time.monotonic()

    def _sanitize_command(self, command: str) -> str:
        sanitized = command
        for pattern in _SECRET_PATTERNS:
            sanitized = pattern.sub(r"\1***", sanitized)
        return sanitized
