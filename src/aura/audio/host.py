"""Audio session for hosts without an OS-level audio session."""

from __future__ import annotations

import logging

from aura.audio.session import DeviceAudioSession
from aura.models.enums import (
    AudioCategory,
    AudioCategoryOption,
    AudioMode,
    AudioPortType,
    OutputOverride,
    RecordPermission,
)

logger = logging.getLogger("aura.audio")


class HostAudioSession(DeviceAudioSession):
    """Permissive session for desktop and server hosts.

    Microphone access is assumed granted and category/route requests are
    accepted without effect. Device selection happens in the media engine's
    track factory instead.
    """

    def __init__(self, outputs: list[AudioPortType] | None = None) -> None:
        self._outputs = outputs or [AudioPortType.BUILT_IN_SPEAKER]
        self._active = False

    @property
    def record_permission(self) -> RecordPermission:
        return RecordPermission.GRANTED

    async def request_record_permission(self) -> bool:
        return True

    def set_category(
        self,
        category: AudioCategory,
        *,
        mode: AudioMode = AudioMode.DEFAULT,
        options: frozenset[AudioCategoryOption] = frozenset(),
    ) -> None:
        logger.debug("Host audio category %s (mode=%s)", category, mode)

    def set_active(self, active: bool, *, notify_others: bool = False) -> None:
        self._active = active

    @property
    def active(self) -> bool:
        return self._active

    @property
    def current_outputs(self) -> list[AudioPortType]:
        return list(self._outputs)

    def override_output_port(self, override: OutputOverride) -> None:
        logger.debug("Host output override %s ignored", override)
