"""Bash shell adapter implementation."""

from __future__ import annotations

import contextlib
import shutil
import signal
import subprocess
import threading
from collections.abc import Iterator

from .base import CommandResult, ShellAdapter
from .safety import Classifier, classify


class BashAdapter(ShellAdapter):
    """Adapter for command execution via ``bash``/``sh``.

    The child process shares the caller's terminal, so suggested commands
    can prompt, page and print exactly as if typed by hand.
    """

    def __init__(
        self,
        executable: str | None = None,
        *,
        classifier: Classifier = classify,
        fallback_to_sh: bool = True,
    ) -> None:
        super().__init__(classifier=classifier)
        self.executable = executable or _default_executable(fallback_to_sh=fallback_to_sh)

    @property
    def name(self) -> str:
        return "bash"

    def execute(self, command: str, *, cwd: str | None = None) -> CommandResult:
        self.log_request(command, cwd=cwd)
        blocked_reason = self.enforce_guardrails(command)
        if blocked_reason:
            result = self.blocked_result(command, blocked_reason)
            self.log_result(result)
            return result

        started = self.monotonic_now()
        try:
            with _sigint_ignored():
                process = subprocess.run(
                    [self.executable, "-c", command],
                    cwd=cwd,
                    check=False,
                    preexec_fn=_restore_default_sigint,
                )
        except FileNotFoundError as exc:
            if cwd is not None and exc.filename == cwd:
                reason = f"working directory not found: {cwd}"
            else:
                reason = f"shell executable not found: {self.executable}"
            result = CommandResult(
                command=command,
                shell=self.name,
                returncode=127,
                executed=False,
                block_reason=reason,
            )
        else:
            result = CommandResult(
                command=command,
                shell=self.name,
                returncode=process.returncode,
                duration_seconds=self.monotonic_now() - started,
            )

        self.log_result(result)
        return result


def _default_executable(*, fallback_to_sh: bool) -> str:
    if shutil.which("bash"):
        return "bash"
    if fallback_to_sh and shutil.which("sh"):
        return "sh"
    return "bash"


@contextlib.contextmanager
def _sigint_ignored() -> Iterator[None]:
    """Let Ctrl-C reach only the foreground child, the way interactive shells do."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _restore_default_sigint() -> None:
    # Ignored dispositions survive exec; the child must stay interruptible.
    signal.signal(signal.SIGINT, signal.SIG_DFL)
