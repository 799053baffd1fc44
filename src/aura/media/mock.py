"""Mock media engine for testing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from aura.core.errors import MediaEngineError
from aura.media.engine import (
    DataChannelMessageCallback,
    DataChannelStateCallback,
    IceStateCallback,
    MediaEngine,
)
from aura.models.enums import DataChannelState, IceConnectionState, SdpType
from aura.models.session import DataChannelMessage, SessionDescription

_MOCK_OFFER = "v=0\r\no=- 0 0 IN IP4 127.0.0.1\r\ns=-\r\nt=0 0\r\nm=audio 9 UDP/TLS/RTP/SAVPF 111\r\n"


@dataclass
class MockCall:
    """Record of a method call for test assertions."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class MockMediaEngine(MediaEngine):
    """Mock media engine for testing.

    Tracks all method calls and provides helpers to simulate ICE and data
    channel events. Individual operations can be made to fail by setting
    ``fail_open``, ``fail_offer``, ``fail_remote``, ``fail_send`` or
    ``fail_close`` to an error message.

    Example:
        engine = MockMediaEngine()

        await engine.open()
        assert engine.calls[-1].method == "open"

        await engine.simulate_ice_state(IceConnectionState.FAILED)
        await engine.simulate_message('{"type": "session.created"}')
    """

    def __init__(self, *, label: str = "oai-events") -> None:
        self.calls: list[MockCall] = []
        self.sent: list[str | bytes] = []
        self.remote_description: SessionDescription | None = None
        self.track_generation = 0
        self.label = label
        self.fail_open: str | None = None
        self.fail_offer: str | None = None
        self.fail_remote: str | None = None
        self.fail_send: str | None = None
        self.fail_close: str | None = None
        self._open = False
        self._ice_state = IceConnectionState.NEW
        self._channel_state = DataChannelState.CLOSED
        # Callbacks
        self._ice_callbacks: list[IceStateCallback] = []
        self._channel_state_callbacks: list[DataChannelStateCallback] = []
        self._message_callbacks: list[DataChannelMessageCallback] = []

    @property
    def name(self) -> str:
        return "MockMediaEngine"

    @property
    def ice_connection_state(self) -> IceConnectionState:
        return self._ice_state

    @property
    def data_channel_state(self) -> DataChannelState:
        return self._channel_state

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self.calls.append(MockCall(method="open"))
        if self.fail_open:
            raise MediaEngineError(self.fail_open)
        self._open = True
        self._ice_state = IceConnectionState.NEW
        self._channel_state = DataChannelState.CONNECTING
        self.track_generation += 1

    async def create_offer(self) -> SessionDescription:
        self.calls.append(MockCall(method="create_offer"))
        if self.fail_offer:
            raise MediaEngineError(self.fail_offer)
        return SessionDescription(type=SdpType.OFFER, sdp=_MOCK_OFFER)

    async def set_remote_description(self, description: SessionDescription) -> None:
        self.calls.append(
            MockCall(method="set_remote_description", args={"type": str(description.type)})
        )
        if self.fail_remote:
            raise MediaEngineError(self.fail_remote)
        self.remote_description = description

    async def recreate_local_audio_track(self) -> None:
        self.track_generation += 1
        self.calls.append(
            MockCall(method="recreate_local_audio_track", args={"generation": self.track_generation})
        )

    def send(self, data: str | bytes) -> None:
        if self.fail_send:
            raise MediaEngineError(self.fail_send)
        if self._channel_state != DataChannelState.OPEN:
            raise MediaEngineError("Data channel is not open")
        self.sent.append(data)
        self.calls.append(MockCall(method="send", args={"size": len(data)}))

    async def close(self) -> None:
        self.calls.append(MockCall(method="close"))
        self._open = False
        self._channel_state = DataChannelState.CLOSED
        self._ice_state = IceConnectionState.CLOSED
        self.remote_description = None
        if self.fail_close:
            raise MediaEngineError(self.fail_close)

    def method_calls(self, method: str) -> list[MockCall]:
        return [c for c in self.calls if c.method == method]

    # -- Callback registration --

    def on_ice_connection_state_change(self, callback: IceStateCallback) -> None:
        self._ice_callbacks.append(callback)

    def on_data_channel_state_change(self, callback: DataChannelStateCallback) -> None:
        self._channel_state_callbacks.append(callback)

    def on_data_channel_message(self, callback: DataChannelMessageCallback) -> None:
        self._message_callbacks.append(callback)

    # -- Test helpers: simulate engine events --

    async def simulate_ice_state(self, state: IceConnectionState) -> None:
        """Simulate an ICE connection state change."""
        self._ice_state = state
        for cb in self._ice_callbacks:
            result = cb(state)
            if hasattr(result, "__await__"):
                await result

    def set_ice_state(self, state: IceConnectionState) -> None:
        """Change the ICE state without notifying observers."""
        self._ice_state = state

    async def simulate_channel_state(self, state: DataChannelState) -> None:
        """Simulate a data channel ready-state change."""
        self._channel_state = state
        for cb in self._channel_state_callbacks:
            result = cb(state, self.label)
            if hasattr(result, "__await__"):
                await result

    async def simulate_message(self, data: str | bytes) -> None:
        """Simulate an inbound data channel frame."""
        message = DataChannelMessage(data=data)
        for cb in self._message_callbacks:
            result = cb(message)
            if hasattr(result, "__await__"):
                await result
