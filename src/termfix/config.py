"""File-backed credential and persona configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from .errors import ConfigurationError

STATE_DIR = Path("~/.termfix")
DEFAULT_CONFIG_FILE = STATE_DIR / "config.json"
DEFAULT_PERSONALITY_FILE = STATE_DIR / "personality.json"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Key variables honoured by earlier releases, checked last.
PROVIDER_KEY_ENV_VARS = {
    "xai": "XAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


def _to_bool(value: str | None, default: bool = False) -> bool:
    """Convert common env var truthy/falsy values into booleans."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Credential snapshot loaded once per process."""

    provider: str
    api_key: str = field(repr=False)
    model: str
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    shell: str | None = None
    strict_safety: bool = False

    @classmethod
    def load(cls, path: str | Path | None = None) -> AppConfig:
        """Read the credential file, apply env overrides and validate it."""
        config_path = _resolve_path(path, "TERMFIX_CONFIG_FILE", DEFAULT_CONFIG_FILE)
        file_config = _load_credential_file(config_path)

        provider = (
            _to_optional_string(os.getenv("TERMFIX_API_PROVIDER"))
            or _to_optional_string(file_config.get("api_provider"))
        )
        if provider is not None:
            provider = provider.lower()
        api_key = (
            _to_optional_string(os.getenv("TERMFIX_API_KEY"))
            or _to_optional_string(file_config.get("api_key"))
            or _provider_env_key(provider)
        )
        model = (
            _to_optional_string(os.getenv("TERMFIX_MODEL"))
            or _to_optional_string(file_config.get("model"))
        )

        missing = [
            name
            for name, value in (
                ("api_provider", provider),
                ("api_key", api_key),
                ("model", model),
            )
            if value is None
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required setting(s) {', '.join(missing)} in {config_path}"
            )
        file_strict = file_config.get("strict_safety")
        return cls(
            provider=cast(str, provider),
            api_key=cast(str, api_key),
            model=cast(str, model),
            timeout=_to_positive_float(
                os.getenv("TERMFIX_TIMEOUT") or file_config.get("timeout"),
                default=DEFAULT_TIMEOUT_SECONDS,
            ),
            shell=(
                _to_optional_string(os.getenv("TERMFIX_SHELL"))
                or _to_optional_string(file_config.get("shell"))
            ),
            strict_safety=_to_bool(
                os.getenv("TERMFIX_STRICT_SAFETY"),
                default=file_strict if isinstance(file_strict, bool) else False,
            ),
        )


@dataclass(frozen=True, slots=True)
class Personality:
    """Persona used to flavour the system prompt; empty means uninitialized."""

    name: str = ""
    description: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.name and not self.description

    @classmethod
    def load(cls, path: str | Path | None = None) -> Personality:
        persona_path = _resolve_path(path, "TERMFIX_PERSONALITY_FILE", DEFAULT_PERSONALITY_FILE)
        parsed = _load_file_config(persona_path)
        name = parsed.get("name")
        description = parsed.get("description")
        return cls(
            name=name.strip() if isinstance(name, str) else "",
            description=description.strip() if isinstance(description, str) else "",
        )


def _resolve_path(path: str | Path | None, env_var: str, default: Path) -> Path:
    if path is not None:
        return Path(path).expanduser()
    explicit_path = os.getenv(env_var)
    if explicit_path:
        return Path(explicit_path).expanduser()
    return default.expanduser()


def _to_optional_string(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _provider_env_key(provider: str | None) -> str | None:
    if provider is None:
        return None
    env_var = PROVIDER_KEY_ENV_VARS.get(provider)
    if env_var is None:
        return None
    return _to_optional_string(os.getenv(env_var))


def _load_file_config(path: Path) -> dict[str, object]:
    if not path.exists() or not path.is_file():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            parsed = json.load(fh)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    if isinstance(parsed, dict):
        return parsed
    return {}


def _load_credential_file(path: Path) -> dict[str, object]:
    """Like ``_load_file_config`` but a present, broken file is fatal."""
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            parsed = json.load(fh)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read credential file {path}: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError(f"Credential file {path} must contain a JSON object")
    return parsed


def _to_positive_float(value: object, *, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else default
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return default
        return parsed if parsed > 0 else default
    return default
