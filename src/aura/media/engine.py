"""MediaEngine abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from aura.models.enums import DataChannelState, IceConnectionState
from aura.models.session import DataChannelMessage, SessionDescription

# Callback type aliases
IceStateCallback = Callable[[IceConnectionState], Any]
DataChannelStateCallback = Callable[[DataChannelState, str], Any]
"""(state, label)"""
DataChannelMessageCallback = Callable[[DataChannelMessage], Any]


class MediaEngine(ABC):
    """Peer-connection collaborator driven by the session state machine.

    The engine creates the local audio capture track, produces the local
    offer, applies the remote answer, reports ICE connectivity changes and
    carries the ordered, reliable data channel. Callbacks may return an
    awaitable; engines await it.

    Only :class:`~aura.core.client.VoiceSessionClient` calls these methods.

    Example:
        engine.on_ice_connection_state_change(handle_ice)
        engine.on_data_channel_message(handle_message)

        await engine.open()
        offer = await engine.create_offer()
        await engine.set_remote_description(answer)
        engine.send('{"type": "response.create"}')
        await engine.close()
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name (e.g. 'aiortc')."""
        ...

    @property
    @abstractmethod
    def ice_connection_state(self) -> IceConnectionState:
        """Current ICE connection state of the peer connection."""
        ...

    @property
    @abstractmethod
    def data_channel_state(self) -> DataChannelState:
        ...

    @property
    def is_open(self) -> bool:
        """True while a peer connection exists."""
        return False

    @abstractmethod
    async def open(self) -> None:
        """Create the peer connection, local audio track and data channel.

        Raises:
            MediaEngineError: If the peer cannot be created.
        """
        ...

    @abstractmethod
    async def create_offer(self) -> SessionDescription:
        """Create the local offer and apply it as the local description.

        Raises:
            MediaEngineError: If the offer cannot be created or applied.
        """
        ...

    @abstractmethod
    async def set_remote_description(self, description: SessionDescription) -> None:
        """Apply the remote answer.

        Raises:
            MediaEngineError: If the answer is rejected.
        """
        ...

    @abstractmethod
    async def recreate_local_audio_track(self) -> None:
        """Replace the local capture track with a fresh one.

        Some platforms invalidate capture resources across audio
        interruptions.
        """
        ...

    @abstractmethod
    def send(self, data: str | bytes) -> None:
        """Send a frame over the data channel.

        Raises:
            MediaEngineError: If the channel is not open.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the data channel, remove local tracks and close the peer.

        Must be idempotent. Engine state is released even when this raises.

        Raises:
            MediaEngineError: If tearing down the peer fails.
        """
        ...

    # -- Callback registration --

    def on_ice_connection_state_change(self, callback: IceStateCallback) -> None:
        """Register callback for ICE connection state changes."""

    def on_data_channel_state_change(self, callback: DataChannelStateCallback) -> None:
        """Register callback for data channel ready-state changes."""

    def on_data_channel_message(self, callback: DataChannelMessageCallback) -> None:
        """Register callback for inbound data channel frames."""
