"""Data models and enums."""

from aura.models.enums import (
    AudioCategory,
    AudioCategoryOption,
    AudioMode,
    AudioPortType,
    DataChannelState,
    IceConnectionState,
    InterruptionType,
    MessageFormat,
    OutputOverride,
    RecordPermission,
    RemoteCommand,
    SdpType,
    SessionState,
    WebhookEventType,
)
from aura.models.session import (
    DataChannelMessage,
    EphemeralCredential,
    LogEntry,
    ReconnectState,
    SessionDescription,
    WebhookEvent,
)

__all__ = [
    "AudioCategory",
    "AudioCategoryOption",
    "AudioMode",
    "AudioPortType",
    "DataChannelMessage",
    "DataChannelState",
    "EphemeralCredential",
    "IceConnectionState",
    "InterruptionType",
    "LogEntry",
    "MessageFormat",
    "OutputOverride",
    "ReconnectState",
    "RecordPermission",
    "RemoteCommand",
    "SdpType",
    "SessionDescription",
    "SessionState",
    "WebhookEvent",
    "WebhookEventType",
]
