"""All string enums for Aura."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class SessionState(StrEnum):
    """Connection status of a voice session.

    Values are the display strings reported to the presentation layer and
    carried in the ``state`` field of every webhook event.
    """

    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    ERROR = "Error"


@unique
class IceConnectionState(StrEnum):
    NEW = "new"
    CHECKING = "checking"
    CONNECTED = "connected"
    COMPLETED = "completed"
    DISCONNECTED = "disconnected"
    FAILED = "failed"
    CLOSED = "closed"


@unique
class DataChannelState(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


@unique
class SdpType(StrEnum):
    OFFER = "offer"
    ANSWER = "answer"


@unique
class WebhookEventType(StrEnum):
    SESSION_START = "session_start"
    SESSION_STOP = "session_stop"
    MIC_PERMISSION_DENIED = "mic_permission_denied"
    MIC_PERMISSION_REQUESTED = "mic_permission_requested"
    CONNECTED = "connected"
    ERROR = "error"
    RECONNECT_SCHEDULED = "reconnect_scheduled"
    ICE_STATE_CHANGE = "ice_state_change"
    AUDIO_INTERRUPTED = "audio_interrupted"
    DATACHANNEL_STATE = "datachannel_state"
    OAI_EVENT = "oai_event"
    OAI_EVENT_BINARY = "oai_event_binary"


@unique
class MessageFormat(StrEnum):
    """How an inbound data-channel frame was interpreted."""

    TEXT = "text"
    BINARY_AS_TEXT = "binary->text"
    BINARY = "binary"


# -- Device audio session --


@unique
class RecordPermission(StrEnum):
    GRANTED = "granted"
    DENIED = "denied"
    UNDETERMINED = "undetermined"


@unique
class AudioCategory(StrEnum):
    PLAY_AND_RECORD = "play_and_record"
    PLAYBACK = "playback"
    RECORD = "record"


@unique
class AudioMode(StrEnum):
    DEFAULT = "default"
    VOICE_CHAT = "voice_chat"


@unique
class AudioCategoryOption(StrEnum):
    ALLOW_BLUETOOTH = "allow_bluetooth"
    ALLOW_BLUETOOTH_A2DP = "allow_bluetooth_a2dp"
    DEFAULT_TO_SPEAKER = "default_to_speaker"
    MIX_WITH_OTHERS = "mix_with_others"


@unique
class AudioPortType(StrEnum):
    BUILT_IN_SPEAKER = "built_in_speaker"
    BUILT_IN_RECEIVER = "built_in_receiver"
    HEADPHONES = "headphones"
    HEADSET_MIC = "headset_mic"
    BLUETOOTH_A2DP = "bluetooth_a2dp"
    BLUETOOTH_HFP = "bluetooth_hfp"
    BLUETOOTH_LE = "bluetooth_le"
    LINE_OUT = "line_out"
    USB_AUDIO = "usb_audio"


@unique
class OutputOverride(StrEnum):
    NONE = "none"
    SPEAKER = "speaker"


@unique
class InterruptionType(StrEnum):
    BEGAN = "began"
    ENDED = "ended"


@unique
class RemoteCommand(StrEnum):
    PLAY = "play"
    PAUSE = "pause"
    STOP = "stop"
