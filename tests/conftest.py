"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import httpx
import pytest

from aura.audio.mock import MockAudioSession
from aura.config import AudioConfig, AuraConfig, ReconnectPolicy, SignalingConfig
from aura.core.client import VoiceSessionClient
from aura.core.diagnostics import DiagnosticsLog
from aura.core.mock import MockTimerQueue
from aura.media.mock import MockMediaEngine
from aura.signaling.client import SignalingClient
from aura.webhook.mock import MockWebhookSink

BACKEND = "https://backend.example.com"
ANSWER_SDP = "v=0\r\no=- 1 1 IN IP4 0.0.0.0\r\ns=-\r\nt=0 0\r\nm=audio 9 UDP/TLS/RTP/SAVPF 111\r\n"


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay.

        await advance()       # 5 yields (default)
        await advance(10)     # 10 yields for heavier workloads
    """

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


class FakeBackend:
    """Scripted credential and negotiation endpoints for ``httpx.MockTransport``.

    ``token_responses`` and ``answer_responses`` are consumed in order; the
    last entry repeats once the list runs out.
    """

    def __init__(self) -> None:
        self.token_responses: list[httpx.Response] = [httpx.Response(200, json={"key": "abc123"})]
        self.answer_responses: list[httpx.Response] = [
            httpx.Response(201, content=ANSWER_SDP, headers={"content-type": "application/sdp"})
        ]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/aura/token":
            return self._next(self.token_responses)
        if request.url.path == "/v1/realtime":
            return self._next(self.answer_responses)
        return httpx.Response(404)

    @staticmethod
    def _next(responses: list[httpx.Response]) -> httpx.Response:
        return responses.pop(0) if len(responses) > 1 else responses[0]

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def fail_token(self, status: int = 500, body: str = "boom") -> None:
        self.token_responses = [httpx.Response(status, text=body)]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def config() -> AuraConfig:
    return AuraConfig(
        signaling=SignalingConfig(backend_base_url=BACKEND),
        reconnect=ReconnectPolicy(settle_delay_seconds=0.0),
        audio=AudioConfig(interruption_resume_delay=0.0),
    )


@pytest.fixture
def signaling(config: AuraConfig, backend: FakeBackend) -> SignalingClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
    return SignalingClient(config.signaling, client=http)


@pytest.fixture
def engine() -> MockMediaEngine:
    return MockMediaEngine()


@pytest.fixture
def audio() -> MockAudioSession:
    return MockAudioSession()


@pytest.fixture
def webhook() -> MockWebhookSink:
    return MockWebhookSink()


@pytest.fixture
def timers() -> MockTimerQueue:
    return MockTimerQueue()


@pytest.fixture
def make_client(
    config: AuraConfig,
    engine: MockMediaEngine,
    audio: MockAudioSession,
    signaling: SignalingClient,
    webhook: MockWebhookSink,
    timers: MockTimerQueue,
) -> Callable[..., VoiceSessionClient]:
    """Build a client wired to the mock collaborators.

    Keyword arguments override the configuration or any collaborator.
    """

    def _make(**overrides: Any) -> VoiceSessionClient:
        return VoiceSessionClient(
            overrides.pop("config", config),
            media_engine=overrides.pop("media_engine", engine),
            audio_session=overrides.pop("audio_session", audio),
            signaling=overrides.pop("signaling", signaling),
            webhook=overrides.pop("webhook", webhook),
            timers=overrides.pop("timers", timers),
            diagnostics=overrides.pop("diagnostics", DiagnosticsLog()),
        )

    return _make


@pytest.fixture
def client(make_client: Callable[..., VoiceSessionClient]) -> VoiceSessionClient:
    return make_client()
