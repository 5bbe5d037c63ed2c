"""Shell adapter implementations."""

from ..errors import ConfigurationError
from .base import CommandResult, ShellAdapter
from .bash_adapter import BashAdapter
from .safety import SafetyVerdict, classify, classify_strict, select_classifier


def create_shell_adapter(
    shell_name: str | None = None, *, strict_safety: bool = False
) -> ShellAdapter:
    classifier = select_classifier(strict=strict_safety)
    if shell_name is None:
        return BashAdapter(classifier=classifier)
    normalized = shell_name.strip().lower()
    if normalized in {"bash", "sh"}:
        return BashAdapter(executable=normalized, classifier=classifier)
    msg = f"Unsupported shell adapter: {shell_name}"
    raise ConfigurationError(msg)


__all__ = [
    "BashAdapter",
    "CommandResult",
    "SafetyVerdict",
    "ShellAdapter",
    "classify",
    "classify_strict",
    "create_shell_adapter",
    "select_classifier",
]
