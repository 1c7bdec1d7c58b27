"""Tests for the /api/chat endpoint with faked model, limiter and backend."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from animekun_chat.application.interfaces import ChatProvider, RateLimitStore
from animekun_chat.application.services import ChatOrchestrator, RateLimiter
from animekun_chat.application.tools import ToolContext, ToolRegistry
from animekun_chat.config import Settings, get_settings
from animekun_chat.domain.entities import StreamEvent, TokenUsage
from animekun_chat.infrastructure.dependencies import (
    get_chat_orchestrator,
    get_rate_limiter,
    get_tool_registry_factory,
)
from animekun_chat.main import app


# ── Helpers ──

_ORIGINS = ["http://localhost:3000", "https://admin.anime-kun.net"]
_AUTH = {"Authorization": "Bearer jwt-token", "X-User-Id": "42"}
_BODY = {"messages": [{"role": "user", "content": "Liste les saisons"}]}


class FakeRateLimitStore(RateLimitStore):
    def __init__(self):
        self.counts: dict[str, int] = {}

    async def increment(self, key: str, expire_seconds: int) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]


class FakeChatProvider(ChatProvider):
    def __init__(self, chunks: list[str], error: Exception | None = None, fail_after_text: bool = False):
        self.chunks = chunks
        self.error = error
        self.fail_after_text = fail_after_text
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    async def stream_with_tools(self, messages, model, *, tools, tool_handler,
                                temperature=None, max_tokens=None, max_steps=5):
        self.calls += 1
        if self.error is not None and not self.fail_after_text:
            raise self.error
        for chunk in self.chunks:
            yield StreamEvent(type="text", text=chunk, step=1)
        if self.error is not None:
            raise self.error
        yield StreamEvent(type="finish", finish_reason="stop", step=1, usage=TokenUsage())


class Harness:
    """Installs dependency overrides and records what the endpoint did."""

    def __init__(self):
        self.store = FakeRateLimitStore()
        self.provider = FakeChatProvider(["Bonjour", " admin"])
        self.settings = Settings(
            _env_file=None,
            openrouter_api_key="test-key",
            cors_origins=_ORIGINS,
            app_env="test",
        )
        self.max_requests = 3
        self.factory_calls: list = []

    def install(self) -> None:
        app.dependency_overrides[get_settings] = lambda: self.settings
        app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(
            self.store, max_requests=self.max_requests, window_seconds=60
        )
        app.dependency_overrides[get_chat_orchestrator] = lambda: ChatOrchestrator(
            self.provider, model="test-model", max_duration_s=5
        )

        def factory(auth, attachment):
            self.factory_calls.append((auth, attachment))
            return ToolRegistry(ToolContext(backend=None, attachment=attachment))

        app.dependency_overrides[get_tool_registry_factory] = lambda: factory


@pytest.fixture
def harness():
    h = Harness()
    h.install()
    yield h
    app.dependency_overrides.clear()


async def _post(json=None, headers=None) -> httpx.Response:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post("/api/chat", json=json, headers=headers)


# ── Tests ──


@pytest.mark.asyncio
async def test_streams_plain_text_answer(harness):
    response = await _post(_BODY, {**_AUTH, "Origin": "https://admin.anime-kun.net"})

    assert response.status_code == 200
    assert response.text == "Bonjour admin"
    assert response.headers["content-type"] == "text/plain; charset=utf-8"
    assert response.headers["access-control-allow-origin"] == "https://admin.anime-kun.net"
    assert response.headers["x-ratelimit-limit"] == "3"
    assert response.headers["x-ratelimit-remaining"] == "2"
    assert "x-ratelimit-reset" in response.headers
    auth, attachment = harness.factory_calls[0]
    assert auth.token == "jwt-token"
    assert auth.user_id == "42"
    assert attachment is None
    assert len(harness.store.counts) == 1
    assert next(iter(harness.store.counts)).startswith("anime-ai-chat:42:")


@pytest.mark.asyncio
async def test_missing_token_is_rejected_before_anything_runs(harness):
    response = await _post(_BODY, {"Origin": "http://localhost:3000"})

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized", "message": "Missing or invalid bearer token."}
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert harness.provider.calls == 0
    assert harness.store.counts == {}
    assert harness.factory_calls == []


@pytest.mark.asyncio
async def test_non_bearer_authorization_is_rejected(harness):
    response = await _post(_BODY, {"Authorization": "Basic dXNlcjpwYXNz"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_body_is_422(harness):
    response = await _post({"messages": []}, _AUTH)

    assert response.status_code == 422
    assert response.json()["error"] == "Invalid request"
    assert harness.provider.calls == 0


@pytest.mark.asyncio
async def test_rate_limit_exceeded_is_429_with_headers(harness):
    harness.max_requests = 1

    first = await _post(_BODY, _AUTH)
    second = await _post(_BODY, _AUTH)

    assert first.status_code == 200
    assert second.status_code == 429
    body = second.json()
    assert body["error"] == "Rate limit exceeded"
    assert body["message"].startswith("Quota exceeded: 1 requests. Try again after ")
    assert second.headers["x-ratelimit-limit"] == "1"
    assert second.headers["x-ratelimit-remaining"] == "0"
    assert harness.provider.calls == 1


@pytest.mark.asyncio
async def test_missing_api_key_is_500(harness):
    harness.settings = Settings(_env_file=None, openrouter_api_key="", cors_origins=_ORIGINS)

    response = await _post(_BODY, _AUTH)

    assert response.status_code == 500
    assert response.json()["error"] == "Missing API key"
    assert harness.provider.calls == 0


@pytest.mark.asyncio
async def test_connection_error_is_classified_before_streaming(harness):
    harness.provider = FakeChatProvider([], error=httpx.ConnectError("connection refused"))

    response = await _post(_BODY, _AUTH)

    assert response.status_code == 503
    body = response.json()
    assert body["error"] == "Service unavailable"
    assert body["message"].startswith("Le service est momentanément injoignable")
    assert "details" not in body
    assert response.headers["x-ratelimit-remaining"] == "2"


@pytest.mark.asyncio
async def test_failure_after_first_chunk_appends_error_line(harness):
    harness.provider = FakeChatProvider(
        ["Je cherche"], error=RuntimeError("QUOTA_EXCEEDED"), fail_after_text=True
    )

    response = await _post(_BODY, _AUTH)

    assert response.status_code == 200
    assert response.text.startswith("Je cherche\n\n⚠️ Le quota du service IA est atteint")


@pytest.mark.asyncio
async def test_attached_image_reaches_the_tool_context(harness):
    body = {**_BODY, "image": {"base64": "aGVsbG8=", "name": "cover.jpg", "type": "image/jpeg"}}

    response = await _post(body, _AUTH)

    assert response.status_code == 200
    _, attachment = harness.factory_calls[0]
    assert attachment.name == "cover.jpg"


@pytest.mark.asyncio
async def test_anonymous_user_when_no_user_header(harness):
    await _post(_BODY, {"Authorization": "Bearer jwt-token"})

    assert next(iter(harness.store.counts)).startswith("anime-ai-chat:anonymous:")


@pytest.mark.asyncio
async def test_preflight_echoes_allowed_origin(harness):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        allowed = await client.options("/api/chat", headers={"Origin": "https://admin.anime-kun.net"})
        other = await client.options("/api/chat", headers={"Origin": "https://evil.example"})

    assert allowed.status_code == 200
    assert allowed.headers["access-control-allow-origin"] == "https://admin.anime-kun.net"
    assert allowed.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert allowed.headers["access-control-allow-credentials"] == "true"
    assert allowed.headers["access-control-max-age"] == "86400"
    assert other.headers["access-control-allow-origin"] == "http://localhost:3000"
