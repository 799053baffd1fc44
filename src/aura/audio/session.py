"""DeviceAudioSession abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from aura.models.enums import (
    AudioCategory,
    AudioCategoryOption,
    AudioMode,
    AudioPortType,
    InterruptionType,
    OutputOverride,
    RecordPermission,
)

# Callback type aliases
InterruptionCallback = Callable[[InterruptionType, bool], Any]
"""(interruption_type, should_resume)"""
RouteChangeCallback = Callable[[str], Any]
"""(reason)"""
MediaServicesCallback = Callable[[], Any]

EXTERNAL_OUTPUT_PORTS: frozenset[AudioPortType] = frozenset(
    {
        AudioPortType.HEADPHONES,
        AudioPortType.HEADSET_MIC,
        AudioPortType.BLUETOOTH_A2DP,
        AudioPortType.BLUETOOTH_HFP,
        AudioPortType.BLUETOOTH_LE,
    }
)
"""Outputs that take precedence over the built-in loudspeaker."""


class DeviceAudioSession(ABC):
    """The platform audio I/O session.

    Grants or denies microphone access, activates the audio subsystem,
    routes output, and reports interruptions and route changes through
    registered callbacks. Callbacks may fire on any thread.

    Configuration methods raise :class:`~aura.core.errors.AudioSessionError`
    when the platform rejects a request.
    """

    @property
    @abstractmethod
    def record_permission(self) -> RecordPermission: ...

    @abstractmethod
    async def request_record_permission(self) -> bool:
        """Prompt the user for microphone access. Returns whether granted."""
        ...

    @abstractmethod
    def set_category(
        self,
        category: AudioCategory,
        *,
        mode: AudioMode = AudioMode.DEFAULT,
        options: frozenset[AudioCategoryOption] = frozenset(),
    ) -> None: ...

    @abstractmethod
    def set_active(self, active: bool, *, notify_others: bool = False) -> None: ...

    @property
    @abstractmethod
    def current_outputs(self) -> list[AudioPortType]: ...

    @abstractmethod
    def override_output_port(self, override: OutputOverride) -> None: ...

    # -- Callback registration --

    def on_interruption(self, callback: InterruptionCallback) -> None:
        """Register callback for interruption begin/end notifications."""

    def on_route_change(self, callback: RouteChangeCallback) -> None:
        """Register callback for output route changes."""

    def on_media_services_lost(self, callback: MediaServicesCallback) -> None:
        """Register callback fired when the audio daemon goes away."""

    def on_media_services_reset(self, callback: MediaServicesCallback) -> None:
        """Register callback fired after the audio daemon restarts."""
