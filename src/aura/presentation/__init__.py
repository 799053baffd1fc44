"""Optional presentation capabilities."""

from aura.presentation.remote_commands import (
    MockRemoteCommandCenter,
    NowPlayingInfo,
    RemoteCommandBinding,
    RemoteCommandCenter,
)

__all__ = [
    "MockRemoteCommandCenter",
    "NowPlayingInfo",
    "RemoteCommandBinding",
    "RemoteCommandCenter",
]
