"""Tests for the VoiceSessionClient state machine."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import httpx

from aura.audio.mock import MockAudioSession
from aura.config import AuraConfig, ChannelConfig, SignalingConfig, WebhookConfig
from aura.core.client import VoiceSessionClient
from aura.core.mock import MockTimerQueue
from aura.media.mock import MockMediaEngine
from aura.models.enums import (
    DataChannelState,
    InterruptionType,
    RecordPermission,
    SdpType,
    SessionState,
    WebhookEventType,
)
from aura.models.session import EphemeralCredential, SessionDescription
from aura.signaling.client import SignalingClient
from aura.webhook.mock import MockWebhookSink
from aura.webhook.sink import HTTPWebhookSink, NoopWebhookSink

if TYPE_CHECKING:
    from tests.conftest import FakeBackend


def _json_error(status: int, body: str) -> httpx.Response:
    return httpx.Response(
        status, content=body.encode(), headers={"content-type": "application/json"}
    )


def _failure_lines(client: VoiceSessionClient) -> list[str]:
    return [e.message for e in client.diagnostics.entries if e.message.startswith("FAILURE:")]


class TestSuccessfulStart:
    async def test_connects(
        self,
        client: VoiceSessionClient,
        backend: FakeBackend,
        engine: MockMediaEngine,
        webhook: MockWebhookSink,
    ) -> None:
        await client.start()

        assert client.state == SessionState.CONNECTED
        assert client.reconnect_attempts == 0
        assert client.has_credential is False
        assert backend.paths() == ["/api/aura/token", "/v1/realtime"]
        assert [c.method for c in engine.calls] == [
            "open",
            "create_offer",
            "set_remote_description",
        ]
        assert engine.remote_description is not None
        assert engine.remote_description.type == SdpType.ANSWER
        assert webhook.names() == ["session_start", "connected"]
        assert webhook.count(WebhookEventType.CONNECTED) == 1

    async def test_offer_is_sent_with_fetched_key(
        self, client: VoiceSessionClient, backend: FakeBackend
    ) -> None:
        await client.start()

        offer_request = backend.requests[1]
        assert offer_request.headers["authorization"] == "Bearer abc123"
        assert offer_request.content.startswith(b"v=0")

    async def test_webhook_state_reflects_transition(
        self, client: VoiceSessionClient, webhook: MockWebhookSink
    ) -> None:
        await client.start()

        assert webhook.of(WebhookEventType.SESSION_START)[0].state == "Connecting"
        assert webhook.of(WebhookEventType.CONNECTED)[0].state == "Connected"

    async def test_diagnostics_trail(self, client: VoiceSessionClient) -> None:
        await client.start()

        messages = [e.message for e in client.diagnostics.entries]
        assert messages.index("Starting voice session…") < messages.index("Connected")
        assert client.diagnostics.contains("Ephemeral key received")
        assert _failure_lines(client) == []

    async def test_state_change_callbacks(self, client: VoiceSessionClient) -> None:
        transitions: list[tuple[SessionState, SessionState]] = []
        client.on_state_change(lambda old, new: transitions.append((old, new)))

        await client.start()

        assert transitions == [
            (SessionState.DISCONNECTED, SessionState.CONNECTING),
            (SessionState.CONNECTING, SessionState.CONNECTED),
        ]

    async def test_audio_session_configured(
        self, client: VoiceSessionClient, audio: MockAudioSession
    ) -> None:
        await client.start()
        assert audio.active is True
        assert audio.output_override is not None


class TestStartGuards:
    async def test_start_while_connected_is_noop(
        self, client: VoiceSessionClient, backend: FakeBackend, webhook: MockWebhookSink
    ) -> None:
        await client.start()
        await client.start()

        assert client.state == SessionState.CONNECTED
        assert len(backend.requests) == 2
        assert webhook.count(WebhookEventType.SESSION_START) == 1

    async def test_start_while_connecting_is_noop(
        self, make_client, webhook: MockWebhookSink, advance
    ) -> None:
        release = asyncio.Event()

        async def slow_fetch() -> EphemeralCredential:
            await release.wait()
            return EphemeralCredential(key="abc123")

        signaling = AsyncMock(spec=SignalingClient)
        signaling.fetch_credential.side_effect = slow_fetch
        signaling.exchange_offer.return_value = SessionDescription(
            type=SdpType.ANSWER, sdp="v=0\r\n"
        )
        client = make_client(signaling=signaling)

        task = asyncio.create_task(client.start())
        await advance()
        assert client.state == SessionState.CONNECTING

        await client.start()
        assert client.state == SessionState.CONNECTING
        assert client.reconnect_attempts == 0
        assert signaling.fetch_credential.await_count == 1

        release.set()
        await task
        assert client.state == SessionState.CONNECTED
        assert webhook.count(WebhookEventType.SESSION_START) == 1


class TestStop:
    async def test_stop_from_connected(
        self,
        client: VoiceSessionClient,
        engine: MockMediaEngine,
        audio: MockAudioSession,
        webhook: MockWebhookSink,
    ) -> None:
        await client.start()
        await client.stop()

        assert client.state == SessionState.DISCONNECTED
        assert client.has_credential is False
        assert engine.method_calls("close")
        assert engine.is_open is False
        assert audio.active is False
        assert webhook.names()[-1] == "session_stop"
        assert client.diagnostics.contains("Stopped voice session")

    async def test_stop_is_idempotent(
        self, client: VoiceSessionClient, webhook: MockWebhookSink
    ) -> None:
        await client.start()
        await client.stop()
        await client.stop()

        assert client.state == SessionState.DISCONNECTED
        assert webhook.count(WebhookEventType.SESSION_STOP) == 1

    async def test_stop_before_start(self, client: VoiceSessionClient) -> None:
        await client.stop()
        assert client.state == SessionState.DISCONNECTED

    async def test_stop_cancels_pending_reconnect(
        self, client: VoiceSessionClient, backend: FakeBackend, timers: MockTimerQueue
    ) -> None:
        backend.fail_token()
        await client.start()
        assert len(timers.pending) == 1

        await client.stop()

        assert timers.pending == []
        assert client.reconnect_attempts == 0
        assert await timers.fire_next() is None
        assert client.state == SessionState.DISCONNECTED

    async def test_late_response_after_stop_is_discarded(
        self, make_client, engine: MockMediaEngine, webhook: MockWebhookSink, advance
    ) -> None:
        release = asyncio.Event()

        async def slow_fetch() -> EphemeralCredential:
            await release.wait()
            return EphemeralCredential(key="late")

        signaling = AsyncMock(spec=SignalingClient)
        signaling.fetch_credential.side_effect = slow_fetch
        client = make_client(signaling=signaling)

        task = asyncio.create_task(client.start())
        await advance()
        await client.stop()
        release.set()
        await task

        assert client.state == SessionState.DISCONNECTED
        assert client.has_credential is False
        assert engine.method_calls("open") == []
        assert signaling.exchange_offer.await_count == 0
        assert webhook.count(WebhookEventType.CONNECTED) == 0
        assert webhook.count(WebhookEventType.ERROR) == 0


class TestFailures:
    async def test_negotiation_json_error(
        self,
        client: VoiceSessionClient,
        backend: FakeBackend,
        timers: MockTimerQueue,
        webhook: MockWebhookSink,
    ) -> None:
        backend.answer_responses = [_json_error(401, '{"error":"invalid_token"}')]

        await client.start()

        assert client.state == SessionState.ERROR
        assert client.diagnostics.contains('{"error":"invalid_token"}')
        assert timers.delays == [2.0]
        assert webhook.of(WebhookEventType.RECONNECT_SCHEDULED)[0].payload == {
            "attempt": 1,
            "delay": 2.0,
        }
        error = webhook.of(WebhookEventType.ERROR)[0]
        assert error.payload["error_type"] == "negotiation_failed"
        assert error.payload["reconnect_attempts"] == 0

    async def test_credential_failure(
        self, client: VoiceSessionClient, backend: FakeBackend, webhook: MockWebhookSink
    ) -> None:
        backend.fail_token(500, "backend down")

        await client.start()

        assert client.state == SessionState.ERROR
        assert webhook.count(WebhookEventType.CONNECTED) == 0
        assert webhook.count(WebhookEventType.ERROR) == 1
        error = webhook.of(WebhookEventType.ERROR)[0]
        assert error.payload["error_type"] == "credential_fetch_failed"
        assert error.payload["message"].startswith("Token error")
        assert error.payload["reconnect_attempts"] == 0
        assert backend.paths() == ["/api/aura/token"]
        assert len(_failure_lines(client)) == 1

    async def test_offer_creation_failure(
        self, client: VoiceSessionClient, engine: MockMediaEngine, backend: FakeBackend
    ) -> None:
        engine.fail_offer = "no capture device"

        await client.start()

        assert client.state == SessionState.ERROR
        assert _failure_lines(client) == ["FAILURE: Offer creation error: no capture device"]
        assert client.has_credential is False
        assert backend.paths() == ["/api/aura/token"]

    async def test_remote_description_failure(
        self, client: VoiceSessionClient, engine: MockMediaEngine, webhook: MockWebhookSink
    ) -> None:
        engine.fail_remote = "bad answer"

        await client.start()

        assert client.state == SessionState.ERROR
        assert client.diagnostics.contains("setRemoteDescription error: bad answer")
        assert webhook.of(WebhookEventType.ERROR)[0].payload["error_type"] == "negotiation_failed"

    async def test_permission_denied_does_not_retry(
        self,
        make_client,
        backend: FakeBackend,
        timers: MockTimerQueue,
        webhook: MockWebhookSink,
    ) -> None:
        client = make_client(audio_session=MockAudioSession(permission=RecordPermission.DENIED))

        await client.start()

        assert client.state == SessionState.ERROR
        assert webhook.names() == ["session_start", "mic_permission_denied", "error"]
        assert webhook.of(WebhookEventType.ERROR)[0].payload["error_type"] == "permission_denied"
        assert backend.requests == []
        assert timers.scheduled == []
        assert client.reconnect_attempts == 0

    async def test_permission_prompt_refused(
        self, make_client, webhook: MockWebhookSink
    ) -> None:
        audio = MockAudioSession(permission=RecordPermission.UNDETERMINED, grant=False)
        client = make_client(audio_session=audio)

        await client.start()

        assert client.state == SessionState.ERROR
        requested = webhook.of(WebhookEventType.MIC_PERMISSION_REQUESTED)
        assert requested[0].payload == {"granted": False}

    async def test_manual_start_after_permission_denied(
        self, make_client, backend: FakeBackend
    ) -> None:
        audio = MockAudioSession(permission=RecordPermission.DENIED)
        client = make_client(audio_session=audio)
        await client.start()
        assert client.state == SessionState.ERROR

        audio.permission = RecordPermission.GRANTED
        await client.start()

        assert client.state == SessionState.CONNECTED


class TestDataChannel:
    async def test_send_event_when_open(
        self, client: VoiceSessionClient, engine: MockMediaEngine
    ) -> None:
        await client.start()
        await engine.simulate_channel_state(DataChannelState.OPEN)

        assert client.send_event({"type": "response.create"}) is True
        assert engine.sent == ['{"type":"response.create"}']

    async def test_send_event_before_open_fails_quietly(
        self, client: VoiceSessionClient
    ) -> None:
        assert client.send_event({"type": "response.create"}) is False
        assert client.state == SessionState.DISCONNECTED

    async def test_channel_state_is_mirrored(
        self, client: VoiceSessionClient, engine: MockMediaEngine, webhook: MockWebhookSink
    ) -> None:
        await client.start()
        await engine.simulate_channel_state(DataChannelState.OPEN)

        event = webhook.of(WebhookEventType.DATACHANNEL_STATE)[0]
        assert event.payload == {"state": "open", "label": "oai-events"}

    async def test_session_update_on_open(
        self, make_client, config: AuraConfig, engine: MockMediaEngine
    ) -> None:
        client = make_client(
            config=config.model_copy(update={"channel": ChannelConfig(voice="alloy")})
        )
        await client.start()
        await engine.simulate_channel_state(DataChannelState.OPEN)

        assert engine.sent == ['{"type":"session.update","session":{"voice":"alloy"}}']

    async def test_inbound_events(
        self, client: VoiceSessionClient, engine: MockMediaEngine, webhook: MockWebhookSink
    ) -> None:
        received: list[dict[str, Any]] = []
        client.on_event(received.append)
        await client.start()

        await engine.simulate_message('{"type":"session.created"}')
        await engine.simulate_message(b"\xde\xad\xbe\xef")

        assert received == [{"type": "session.created"}]
        assert webhook.count(WebhookEventType.OAI_EVENT) == 1
        assert webhook.of(WebhookEventType.OAI_EVENT_BINARY)[0].payload == {"bytes": 4}


class TestInterruptionRecovery:
    async def test_recreates_track_when_connected(
        self, client: VoiceSessionClient, engine: MockMediaEngine, audio: MockAudioSession
    ) -> None:
        await client.start()

        await audio.simulate_interruption(InterruptionType.BEGAN)
        await audio.simulate_interruption(InterruptionType.ENDED, should_resume=True)

        assert len(engine.method_calls("recreate_local_audio_track")) == 1
        assert client.state == SessionState.CONNECTED

    async def test_no_track_recreation_when_disconnected(
        self, client: VoiceSessionClient, engine: MockMediaEngine, audio: MockAudioSession
    ) -> None:
        await audio.simulate_interruption(InterruptionType.ENDED, should_resume=True)
        assert engine.method_calls("recreate_local_audio_track") == []


class TestLifecycle:
    async def test_aclose_releases_resources(
        self, client: VoiceSessionClient, webhook: MockWebhookSink, timers: MockTimerQueue
    ) -> None:
        await client.start()
        await client.aclose()

        assert client.state == SessionState.DISCONNECTED
        assert webhook.closed is True
        assert timers.pending == []

    async def test_async_context_manager(self, client: VoiceSessionClient) -> None:
        async with client:
            await client.start()
            assert client.state == SessionState.CONNECTED
        assert client.state == SessionState.DISCONNECTED

    def test_default_webhook_is_noop(self) -> None:
        client = VoiceSessionClient(
            AuraConfig(signaling=SignalingConfig(backend_base_url="https://api.example.com")),
            media_engine=MockMediaEngine(),
            audio_session=MockAudioSession(),
        )
        assert isinstance(client._webhook, NoopWebhookSink)

    def test_configured_webhook_uses_http_sink(self) -> None:
        client = VoiceSessionClient(
            AuraConfig(
                signaling=SignalingConfig(backend_base_url="https://api.example.com"),
                webhook=WebhookConfig(url="https://hooks.example.com/aura"),
            ),
            media_engine=MockMediaEngine(),
            audio_session=MockAudioSession(),
        )
        assert isinstance(client._webhook, HTTPWebhookSink)
