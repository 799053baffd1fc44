"""Live voice session over WebRTC.

Connects to a realtime voice backend using the aiortc media engine:
- Fetches an ephemeral key from your backend
- Negotiates the peer connection with the realtime endpoint
- Prints inbound data channel events and the diagnostics log

Requires the aiortc extra and a backend that issues ephemeral keys:
    pip install aura-voice[aiortc]
    export AURA_BACKEND_URL=https://backend.example.com

Run with:
    uv run python examples/voice_session.py
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

from aura import AuraConfig, ChannelConfig, HostAudioSession, SignalingConfig, VoiceSessionClient
from aura.media.aiortc_engine import AiortcMediaEngine


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

    config = AuraConfig(
        signaling=SignalingConfig(backend_base_url=os.environ["AURA_BACKEND_URL"]),
        channel=ChannelConfig(voice="alloy"),
    )
    client = VoiceSessionClient(
        config,
        media_engine=AiortcMediaEngine(),
        audio_session=HostAudioSession(),
    )

    def print_event(event: dict[str, Any]) -> None:
        print(f"  <- {event.get('type')}")

    client.on_event(print_event)
    client.on_state_change(lambda old, new: print(f"State: {old} -> {new}"))

    async with client:
        await client.start()
        await asyncio.sleep(30)

    print("\n--- Diagnostics ---")
    for line in client.diagnostics.format_lines(20):
        print(line)


if __name__ == "__main__":
    asyncio.run(main())
