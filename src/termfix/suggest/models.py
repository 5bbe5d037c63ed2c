"""Data models for a single suggestion cycle."""

from __future__ import annotations

import getpass
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

MessageRole = Literal["system", "user"]


@dataclass(frozen=True, slots=True)
class Invocation:
    """The unresolved command line handed over by the shell hook."""

    tokens: tuple[str, ...]
    working_directory: str
    user: str

    @property
    def command_line(self) -> str:
        return " ".join(self.tokens)

    @classmethod
    def from_argv(
        cls,
        argv: Sequence[str],
        *,
        working_directory: str | None = None,
        user: str | None = None,
    ) -> Invocation:
        return cls(
            tokens=tuple(argv),
            working_directory=working_directory or _current_directory(),
            user=user or _current_user(),
        )


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: MessageRole
    content: str


@dataclass(frozen=True, slots=True)
class CompletionRequest:
    """Chat-completion request body; the system message always leads."""

    model: str
    messages: tuple[ChatMessage, ...]

    @classmethod
    def build(cls, model: str, system_prompt: str, user_prompt: str) -> CompletionRequest:
        return cls(
            model=model,
            messages=(
                ChatMessage(role="system", content=system_prompt),
                ChatMessage(role="user", content=user_prompt),
            ),
        )

    def to_payload(self) -> dict[str, object]:
        return {
            "model": self.model,
            "messages": [
                {"role": message.role, "content": message.content} for message in self.messages
            ],
        }


@dataclass(slots=True)
class ParsedSuggestion:
    """Explanation and optional command recovered from a model reply."""

    explanation: str
    command: str | None = None


def _current_directory() -> str:
    try:
        return str(Path.cwd())
    except OSError:
        # The directory was removed underneath the shell; keep its last known path.
        return os.getenv("PWD") or "."


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.getenv("USER") or os.getenv("USERNAME") or "unknown"
