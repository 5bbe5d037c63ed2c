"""Static denylist deciding whether a suggested command may auto-run."""

from __future__ import annotations

import os
import shlex
from collections.abc import Callable
from dataclasses import dataclass

# Plain substring checks against the raw command, before any shell expansion.
# Deliberately naive: "grep sudo-log" is flagged, "rmdir build" is not.
DENYLIST = ("rm -rf", "sudo", "rm ", "dd ", "mkfs")

# Program names rejected by the opt-in strict classifier.
STRICT_PROGRAMS = frozenset({"rm", "dd", "sudo", "doas", "su", "shred"})
STRICT_PROGRAM_PREFIXES = ("mkfs",)


@dataclass(frozen=True, slots=True)
class SafetyVerdict:
    safe: bool
    reason: str | None = None

    @classmethod
    def ok(cls) -> SafetyVerdict:
        return cls(safe=True)

    @classmethod
    def unsafe(cls, reason: str) -> SafetyVerdict:
        return cls(safe=False, reason=reason)


Classifier = Callable[[str], SafetyVerdict]


def classify(command: str) -> SafetyVerdict:
    """Return Unsafe when any denylisted substring occurs in ``command``."""
    for pattern in DENYLIST:
        if pattern in command:
            return SafetyVerdict.unsafe(f"contains {pattern!r}")
    return SafetyVerdict.ok()


def classify_strict(command: str) -> SafetyVerdict:
    """Denylist check plus a token scan for dangerous program names.

    Only ever adds rejections on top of ``classify``; it catches spellings
    such as ``rm\\t-fr`` or ``/bin/rm`` that slip past the substring list.
    """
    verdict = classify(command)
    if not verdict.safe:
        return verdict

    try:
        tokens = shlex.split(command, comments=False, posix=True)
    except ValueError:
        tokens = command.split()

    for token in tokens:
        program = os.path.basename(token)
        if program in STRICT_PROGRAMS or program.startswith(STRICT_PROGRAM_PREFIXES):
            return SafetyVerdict.unsafe(f"invokes {program!r}")
    return SafetyVerdict.ok()


def select_classifier(*, strict: bool) -> Classifier:
    return classify_strict if strict else classify
