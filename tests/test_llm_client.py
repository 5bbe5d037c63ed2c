import http.client
import io
import json
from urllib.error import HTTPError, URLError

import pytest

from termfix.config import AppConfig
from termfix.errors import ApiError, NetworkError, ProviderUnsupported
from termfix.llm.client import CompletionClient, complete


class FakeResponse:
    def __init__(self, body: bytes) -> None:
        self.body = body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None

    def read(self):
        return self.body


def _client(provider: str = "xai") -> CompletionClient:
    return CompletionClient(provider=provider, api_key="secret", model="grok-3", timeout=5.0)


def _reply(content: str) -> bytes:
    return json.dumps({"choices": [{"message": {"role": "assistant", "content": content}}]}).encode()


def test_complete_posts_system_then_user_message(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["timeout"] = timeout
        captured["headers"] = dict(req.header_items())
        captured["body"] = json.loads(req.data.decode("utf-8"))
        return FakeResponse(_reply("Explanation: hi"))

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    reply = _client().complete("system text", "user text")

    assert reply == "Explanation: hi"
    assert captured["url"] == "https://api.x.ai/v1/chat/completions"
    assert captured["timeout"] == 5.0
    assert captured["headers"]["Authorization"] == "Bearer secret"
    assert captured["body"] == {
        "model": "grok-3",
        "messages": [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ],
    }


def test_openrouter_uses_its_endpoint_and_attribution_headers(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["headers"] = dict(req.header_items())
        return FakeResponse(_reply("ok"))

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    _client("openrouter").complete("s", "u")

    assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert captured["headers"]["X-title"] == "termfix"
    assert "Http-referer" in captured["headers"]


def test_unknown_provider_fails_without_network_call(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise AssertionError("network must not be touched")

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(ProviderUnsupported, match="anthropic"):
        _client("anthropic").complete("s", "u")


def test_http_error_raises_api_error_with_excerpt(monkeypatch) -> None:
    class FakeHTTPError(HTTPError):
        def __init__(self):
            super().__init__(
                url="https://example.com",
                code=401,
                msg="Unauthorized",
                hdrs=None,
                fp=io.BytesIO(b'{"error":"invalid api key"}'),
            )

    def fake_urlopen(*_args, **_kwargs):
        raise FakeHTTPError()

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(ApiError) as excinfo:
        _client().complete("s", "u")

    assert excinfo.value.status == 401
    assert "HTTP 401" in str(excinfo.value)
    assert "invalid api key" in str(excinfo.value)


def test_http_error_without_body(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise HTTPError(
            url="https://example.com",
            code=503,
            msg="Service Unavailable",
            hdrs=None,
            fp=None,
        )

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(ApiError, match="HTTP 503"):
        _client().complete("s", "u")


def test_transport_error_raises_network_error(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise URLError("name resolution failed")

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(NetworkError, match="name resolution failed"):
        _client().complete("s", "u")


def test_timeout_raises_network_error(monkeypatch) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise TimeoutError("timed out")

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(NetworkError, match="timed out after 5.0s"):
        _client().complete("s", "u")


@pytest.mark.parametrize(
    "body",
    [
        b"not-json",
        b"[]",
        b'{"choices": []}',
        b'{"choices": [{"message": {}}]}',
        b'{"error": "overloaded"}',
    ],
)
def test_unusable_payload_raises_api_error(monkeypatch, body: bytes) -> None:
    monkeypatch.setattr(
        "termfix.llm.client.request.urlopen", lambda *_a, **_k: FakeResponse(body)
    )

    with pytest.raises(ApiError):
        _client().complete("s", "u")


def test_module_complete_builds_client_from_config(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req, timeout):
        captured["timeout"] = timeout
        captured["model"] = json.loads(req.data.decode("utf-8"))["model"]
        return FakeResponse(_reply("done"))

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)
    config = AppConfig(provider="openrouter", api_key="k", model="meta/llama", timeout=9.0)

    assert complete(config, "s", "u") == "done"
    assert captured == {"timeout": 9.0, "model": "meta/llama"}


@pytest.mark.parametrize(
    "error",
    [
        http.client.BadStatusLine("garbage"),
        http.client.IncompleteRead(b"partial"),
        http.client.LineTooLong("header line"),
    ],
)
def test_protocol_errors_raise_network_error(monkeypatch, error: Exception) -> None:
    def fake_urlopen(*_args, **_kwargs):
        raise error

    monkeypatch.setattr("termfix.llm.client.request.urlopen", fake_urlopen)

    with pytest.raises(NetworkError, match="protocol error"):
        _client().complete("s", "u")


def test_protocol_error_while_reading_body_raises_network_error(monkeypatch) -> None:
    class TruncatedResponse(FakeResponse):
        def read(self):
            raise http.client.IncompleteRead(b'{"choi')

    monkeypatch.setattr(
        "termfix.llm.client.request.urlopen", lambda *_a, **_k: TruncatedResponse(b"")
    )

    with pytest.raises(NetworkError):
        _client().complete("s", "u")
