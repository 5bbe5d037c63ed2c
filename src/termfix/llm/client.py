"""Thin chat-completion client returning the top reply text."""

from __future__ import annotations

import http.client
import json
import logging
from urllib import request
from urllib.error import HTTPError, URLError

from termfix.config import DEFAULT_TIMEOUT_SECONDS, AppConfig
from termfix.errors import ApiError, NetworkError, ProviderUnsupported
from termfix.suggest.models import CompletionRequest

PROVIDER_ENDPOINTS = {
    "xai": "https://api.x.ai/v1/chat/completions",
    "openrouter": "https://openrouter.ai/api/v1/chat/completions",
}

# OpenRouter attributes traffic to the calling app through these headers.
PROVIDER_EXTRA_HEADERS = {
    "openrouter": {
        "HTTP-Referer": "https://github.com/termfix/termfix",
        "X-Title": "termfix",
    },
}

LOGGER = logging.getLogger(__name__)


class CompletionClient:
    """Small HTTP client issuing one chat-completion request per call."""

    def __init__(
        self,
        *,
        provider: str,
        api_key: str,
        model: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: AppConfig) -> CompletionClient:
        return cls(
            provider=config.provider,
            api_key=config.api_key,
            model=config.model,
            timeout=config.timeout,
        )

    @property
    def api_url(self) -> str:
        try:
            return PROVIDER_ENDPOINTS[self.provider]
        except KeyError:
            raise ProviderUnsupported(self.provider) from None

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send the prompts and return the first choice's message content."""
        api_url = self.api_url
        completion_request = CompletionRequest.build(self.model, system_prompt, user_prompt)
        body = json.dumps(completion_request.to_payload()).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            **PROVIDER_EXTRA_HEADERS.get(self.provider, {}),
        }

        LOGGER.debug(
            "llm_request_prepared",
            extra={
                "api_url": api_url,
                "provider": self.provider,
                "model": self.model,
                "payload_bytes": len(body),
                "timeout_seconds": self.timeout,
            },
        )

        req = request.Request(api_url, data=body, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
                raw_body = resp.read()
        except HTTPError as exc:
            body_excerpt = self._read_error_body_excerpt(exc)
            LOGGER.error(
                "llm_request_http_error",
                extra={
                    "api_url": api_url,
                    "model": self.model,
                    "http_status": exc.code,
                    "reason": exc.reason,
                    "response_excerpt": body_excerpt,
                },
            )
            details = f"Model request failed with HTTP {exc.code}: {exc.reason}"
            if body_excerpt:
                details = f"{details}. Response body: {body_excerpt}"
            raise ApiError(details, status=exc.code) from exc
        except URLError as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": api_url, "model": self.model, "reason": str(exc.reason)},
            )
            raise NetworkError(f"Model request transport error: {exc.reason}") from exc
        except TimeoutError as exc:
            LOGGER.error(
                "llm_request_timeout",
                extra={"api_url": api_url, "model": self.model, "timeout_seconds": self.timeout},
            )
            raise NetworkError(f"Model request timed out after {self.timeout:.1f}s") from exc
        except OSError as exc:
            LOGGER.error(
                "llm_request_transport_error",
                extra={"api_url": api_url, "model": self.model, "reason": str(exc)},
            )
            raise NetworkError(f"Model request transport error: {exc}") from exc
        except http.client.HTTPException as exc:
            LOGGER.error(
                "llm_request_protocol_error",
                extra={"api_url": api_url, "model": self.model, "error": repr(exc)},
            )
            raise NetworkError(f"Model request protocol error: {exc!r}") from exc

        return self._extract_reply_text(raw_body)

    @classmethod
    def _extract_reply_text(cls, raw_body: bytes) -> str:
        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.error("llm_response_parse_error", extra={"error": str(exc)})
            raise ApiError(f"Model response parsing error: {exc}") from exc

        if not isinstance(payload, dict):
            raise ApiError("Model response parsing error: expected top-level object")

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ApiError("Model response contained no choices")

        first_choice = choices[0]
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ApiError("Model response choice has no message content")
        return content

    @staticmethod
    def _read_error_body_excerpt(exc: HTTPError, *, max_chars: int = 500) -> str | None:
        if exc.fp is None:
            return None
        try:
            raw = exc.read()
        except OSError:
            return None

        if not raw:
            return None

        excerpt = raw.decode("utf-8", errors="replace").replace("\n", " ").strip()
        if len(excerpt) > max_chars:
            return f"{excerpt[:max_chars]}..."
        return excerpt


def complete(config: AppConfig, system_prompt: str, user_prompt: str) -> str:
    return CompletionClient.from_config(config).complete(system_prompt, user_prompt)
