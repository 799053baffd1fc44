"""Reconnection with exponential backoff, fully offline.

Uses the in-package mocks to show how the session client reacts to a
flaky credential backend. Shows:
- A failed credential fetch moving the session to Error
- Reconnects scheduled after 2, 4 and 8 seconds
- Recovery once the backend answers, with the attempt counter reset

Run with:
    uv run python examples/reconnect_backoff.py
"""

from __future__ import annotations

import asyncio

import httpx

from aura import (
    AuraConfig,
    MockAudioSession,
    MockMediaEngine,
    MockTimerQueue,
    MockWebhookSink,
    ReconnectPolicy,
    SignalingClient,
    SignalingConfig,
    VoiceSessionClient,
)

ANSWER = "v=0\r\no=- 1 1 IN IP4 0.0.0.0\r\ns=-\r\nt=0 0\r\n"


async def main() -> None:
    token_failures = 2

    def backend(request: httpx.Request) -> httpx.Response:
        nonlocal token_failures
        if request.url.path.endswith("/token"):
            if token_failures:
                token_failures -= 1
                return httpx.Response(503, text="warming up")
            return httpx.Response(200, json={"key": "ek_demo"})
        return httpx.Response(201, content=ANSWER, headers={"content-type": "application/sdp"})

    config = AuraConfig(
        signaling=SignalingConfig(backend_base_url="https://backend.example.com"),
        reconnect=ReconnectPolicy(settle_delay_seconds=0),
    )
    timers = MockTimerQueue()
    webhook = MockWebhookSink()
    client = VoiceSessionClient(
        config,
        media_engine=MockMediaEngine(),
        audio_session=MockAudioSession(),
        signaling=SignalingClient(
            config.signaling,
            client=httpx.AsyncClient(transport=httpx.MockTransport(backend)),
        ),
        webhook=webhook,
        timers=timers,
    )

    await client.start()
    print(f"After start: {client.state} (attempts={client.reconnect_attempts})")

    # Fire scheduled reconnects immediately instead of waiting
    while (timer := await timers.fire_next()) is not None:
        print(f"Fired reconnect after {timer.delay:g}s -> {client.state}")

    print(f"\nFinal state: {client.state} (attempts={client.reconnect_attempts})")
    print(f"Webhook events: {webhook.names()}")

    await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
