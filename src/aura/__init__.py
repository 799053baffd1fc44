"""Aura - async Python client for real-time voice sessions."""

from aura._version import __version__
from aura.audio import (
    AudioSessionCoordinator,
    DeviceAudioSession,
    HostAudioSession,
    MockAudioSession,
)
from aura.channel import (
    ClassifiedMessage,
    EventChannelProtocol,
    classify_message,
    decode_event,
    encode_event,
)
from aura.config import (
    AudioConfig,
    AuraConfig,
    ChannelConfig,
    ReconnectPolicy,
    SignalingConfig,
    WebhookConfig,
)
from aura.core.client import VoiceSessionClient
from aura.core.diagnostics import DiagnosticsLog
from aura.core.errors import (
    AudioSessionError,
    AuraError,
    CredentialFetchError,
    MediaEngineError,
    NegotiationError,
    PermissionDeniedError,
    SerializationError,
    TransportError,
)
from aura.core.mock import MockTimerQueue
from aura.core.retry import ReconnectPlan, ReconnectSkip, plan_reconnect
from aura.core.timers import AsyncioTimerQueue, TimerHandle, TimerQueue
from aura.media import MediaEngine, MockMediaEngine
from aura.models import (
    DataChannelMessage,
    DataChannelState,
    EphemeralCredential,
    IceConnectionState,
    LogEntry,
    ReconnectState,
    SessionDescription,
    SessionState,
    WebhookEvent,
    WebhookEventType,
)
from aura.presentation import (
    MockRemoteCommandCenter,
    NowPlayingInfo,
    RemoteCommandBinding,
    RemoteCommandCenter,
)
from aura.signaling import SignalingClient
from aura.webhook import HTTPWebhookSink, MockWebhookSink, NoopWebhookSink, WebhookSink

__all__ = [
    "AsyncioTimerQueue",
    "AudioConfig",
    "AudioSessionCoordinator",
    "AudioSessionError",
    "AuraConfig",
    "AuraError",
    "ChannelConfig",
    "ClassifiedMessage",
    "CredentialFetchError",
    "DataChannelMessage",
    "DataChannelState",
    "DeviceAudioSession",
    "DiagnosticsLog",
    "EphemeralCredential",
    "EventChannelProtocol",
    "HTTPWebhookSink",
    "HostAudioSession",
    "IceConnectionState",
    "LogEntry",
    "MediaEngine",
    "MediaEngineError",
    "MockAudioSession",
    "MockMediaEngine",
    "MockRemoteCommandCenter",
    "MockTimerQueue",
    "MockWebhookSink",
    "NegotiationError",
    "NoopWebhookSink",
    "NowPlayingInfo",
    "PermissionDeniedError",
    "ReconnectPlan",
    "ReconnectPolicy",
    "ReconnectSkip",
    "ReconnectState",
    "RemoteCommandBinding",
    "RemoteCommandCenter",
    "SerializationError",
    "SessionDescription",
    "SessionState",
    "SignalingClient",
    "SignalingConfig",
    "TimerHandle",
    "TimerQueue",
    "TransportError",
    "VoiceSessionClient",
    "WebhookConfig",
    "WebhookEvent",
    "WebhookEventType",
    "WebhookSink",
    "__version__",
    "classify_message",
    "decode_event",
    "encode_event",
    "plan_reconnect",
]
