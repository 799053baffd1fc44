"""Device audio session contract and coordination."""

from aura.audio.coordinator import AudioSessionCoordinator
from aura.audio.host import HostAudioSession
from aura.audio.mock import AudioSessionCall, MockAudioSession
from aura.audio.session import EXTERNAL_OUTPUT_PORTS, DeviceAudioSession

__all__ = [
    "EXTERNAL_OUTPUT_PORTS",
    "AudioSessionCall",
    "AudioSessionCoordinator",
    "DeviceAudioSession",
    "HostAudioSession",
    "MockAudioSession",
]
