"""aiortc-based media engine.

Runs a WebRTC peer connection with one local audio track and an ordered
data channel, suitable for the OpenAI Realtime WebRTC endpoint.

Requires the ``aiortc`` optional dependency::

    pip install aura-voice[aiortc]

Usage::

    from aura.media.aiortc_engine import AiortcMediaEngine
    from aiortc.contrib.media import MediaPlayer

    mic = MediaPlayer("default", format="pulse")
    engine = AiortcMediaEngine(track_factory=lambda: mic.audio)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from aiortc import (
    AudioStreamTrack,
    MediaStreamTrack,
    RTCConfiguration,
    RTCDataChannel,
    RTCIceServer,
    RTCPeerConnection,
    RTCRtpSender,
    RTCSessionDescription,
)
from aiortc.contrib.media import MediaBlackhole

from aura.core.errors import MediaEngineError
from aura.media.engine import (
    DataChannelMessageCallback,
    DataChannelStateCallback,
    IceStateCallback,
    MediaEngine,
)
from aura.models.enums import DataChannelState, IceConnectionState, SdpType
from aura.models.session import DataChannelMessage, SessionDescription

logger = logging.getLogger("aura.media.aiortc")

DEFAULT_ICE_SERVERS: tuple[str, ...] = ("stun:stun.l.google.com:19302",)

TrackFactory = Callable[[], MediaStreamTrack]
RemoteTrackHandler = Callable[[MediaStreamTrack], Any]


def ice_state_from_aiortc(value: str) -> IceConnectionState:
    """Map an aiortc ``iceConnectionState`` string onto our enum."""
    try:
        return IceConnectionState(value)
    except ValueError:
        logger.debug("Unknown ICE state %r, treating as 'new'", value)
        return IceConnectionState.NEW


def channel_state_from_aiortc(value: str) -> DataChannelState:
    try:
        return DataChannelState(value)
    except ValueError:
        return DataChannelState.CLOSED


async def _fire(callbacks: Sequence[Callable[..., Any]], *args: Any) -> None:
    for cb in list(callbacks):
        try:
            result = cb(*args)
            if hasattr(result, "__await__"):
                await result
        except Exception:
            logger.exception("Media engine callback failed")


class AiortcMediaEngine(MediaEngine):
    """MediaEngine backed by :mod:`aiortc`.

    Args:
        ice_servers: STUN/TURN URLs for the peer connection.
        channel_label: Label of the locally created data channel.
        track_factory: Returns a fresh local audio track. Defaults to a
            silent ``AudioStreamTrack``; pass a microphone track in real
            deployments.
        remote_track_handler: Receives remote audio tracks. When omitted
            they are drained into a ``MediaBlackhole``.
    """

    def __init__(
        self,
        *,
        ice_servers: Sequence[str] = DEFAULT_ICE_SERVERS,
        channel_label: str = "oai-events",
        track_factory: TrackFactory | None = None,
        remote_track_handler: RemoteTrackHandler | None = None,
    ) -> None:
        self._ice_servers = list(ice_servers)
        self._channel_label = channel_label
        self._track_factory: TrackFactory = track_factory or AudioStreamTrack
        self._remote_track_handler = remote_track_handler
        self._pc: RTCPeerConnection | None = None
        self._channel: RTCDataChannel | None = None
        self._track: MediaStreamTrack | None = None
        self._sender: RTCRtpSender | None = None
        self._sinks: list[MediaBlackhole] = []
        # Callbacks
        self._ice_callbacks: list[IceStateCallback] = []
        self._channel_state_callbacks: list[DataChannelStateCallback] = []
        self._message_callbacks: list[DataChannelMessageCallback] = []

    @property
    def name(self) -> str:
        return "aiortc"

    @property
    def ice_connection_state(self) -> IceConnectionState:
        if self._pc is None:
            return IceConnectionState.CLOSED
        return ice_state_from_aiortc(self._pc.iceConnectionState)

    @property
    def data_channel_state(self) -> DataChannelState:
        if self._channel is None:
            return DataChannelState.CLOSED
        return channel_state_from_aiortc(self._channel.readyState)

    @property
    def is_open(self) -> bool:
        return self._pc is not None

    async def open(self) -> None:
        if self._pc is not None:
            await self.close()
        try:
            configuration = RTCConfiguration(
                iceServers=[RTCIceServer(urls=url) for url in self._ice_servers]
            )
            pc = RTCPeerConnection(configuration=configuration)
        except Exception as exc:
            raise MediaEngineError(f"Peer connection error: {exc}") from exc
        self._pc = pc
        self._setup_peer_handlers(pc)

        try:
            self._track = self._track_factory()
            self._sender = pc.addTrack(self._track)
            channel = pc.createDataChannel(self._channel_label, ordered=True)
        except Exception as exc:
            await self.close()
            raise MediaEngineError(f"Local media error: {exc}") from exc
        self._attach_channel(channel)
        logger.info("DataChannel created: label=%s", channel.label)

    async def create_offer(self) -> SessionDescription:
        pc = self._require_pc()
        try:
            offer = await pc.createOffer()
            await pc.setLocalDescription(offer)
        except Exception as exc:
            raise MediaEngineError(f"Offer error: {exc}") from exc
        local = pc.localDescription
        if local is None:
            raise MediaEngineError("Offer error: nil SDP")
        return SessionDescription(type=SdpType.OFFER, sdp=local.sdp)

    async def set_remote_description(self, description: SessionDescription) -> None:
        pc = self._require_pc()
        try:
            await pc.setRemoteDescription(
                RTCSessionDescription(sdp=description.sdp, type=str(description.type))
            )
        except Exception as exc:
            raise MediaEngineError(f"setRemoteDescription error: {exc}") from exc

    async def recreate_local_audio_track(self) -> None:
        if self._pc is None or self._sender is None:
            return
        old = self._track
        self._track = self._track_factory()
        result = self._sender.replaceTrack(self._track)
        if hasattr(result, "__await__"):
            await result
        if old is not None:
            old.stop()
        logger.info("Local audio track recreated")

    def send(self, data: str | bytes) -> None:
        channel = self._channel
        if channel is None or channel.readyState != "open":
            raise MediaEngineError("Data channel is not open")
        channel.send(data)

    async def close(self) -> None:
        channel, self._channel = self._channel, None
        track, self._track = self._track, None
        self._sender = None
        pc, self._pc = self._pc, None
        sinks, self._sinks = self._sinks, []
        try:
            if channel is not None:
                channel.remove_all_listeners()
                if channel.readyState == "open":
                    channel.close()
            if track is not None:
                track.stop()
            if pc is not None:
                pc.remove_all_listeners()
                await pc.close()
            for sink in sinks:
                await sink.stop()
        except Exception as exc:
            raise MediaEngineError(f"Peer close error: {exc}") from exc
        if pc is not None:
            logger.info("Peer connection torn down")

    # -- Callback registration --

    def on_ice_connection_state_change(self, callback: IceStateCallback) -> None:
        self._ice_callbacks.append(callback)

    def on_data_channel_state_change(self, callback: DataChannelStateCallback) -> None:
        self._channel_state_callbacks.append(callback)

    def on_data_channel_message(self, callback: DataChannelMessageCallback) -> None:
        self._message_callbacks.append(callback)

    # -- Internals --

    def _require_pc(self) -> RTCPeerConnection:
        if self._pc is None:
            raise MediaEngineError("Peer connection is not open")
        return self._pc

    def _setup_peer_handlers(self, pc: RTCPeerConnection) -> None:
        @pc.on("iceconnectionstatechange")
        async def on_ice_state() -> None:
            state = ice_state_from_aiortc(pc.iceConnectionState)
            await _fire(self._ice_callbacks, state)

        @pc.on("datachannel")
        def on_datachannel(channel: RTCDataChannel) -> None:
            logger.info("DataChannel opened by remote: label=%s", channel.label)
            self._attach_channel(channel)

        @pc.on("track")
        async def on_track(track: MediaStreamTrack) -> None:
            logger.info("Remote track added: %s", track.kind)
            if track.kind != "audio":
                return
            if self._remote_track_handler is not None:
                result = self._remote_track_handler(track)
                if hasattr(result, "__await__"):
                    await result
                return
            sink = MediaBlackhole()
            sink.addTrack(track)
            self._sinks.append(sink)
            await sink.start()

    def _attach_channel(self, channel: RTCDataChannel) -> None:
        self._channel = channel

        @channel.on("open")
        async def on_open() -> None:
            await _fire(self._channel_state_callbacks, DataChannelState.OPEN, channel.label)

        @channel.on("close")
        async def on_close() -> None:
            await _fire(self._channel_state_callbacks, DataChannelState.CLOSED, channel.label)

        @channel.on("message")
        async def on_message(message: str | bytes) -> None:
            await _fire(self._message_callbacks, DataChannelMessage(data=message))
