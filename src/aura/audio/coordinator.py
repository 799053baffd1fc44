"""Audio session coordination: permission, configuration and recovery."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from aura.audio.session import EXTERNAL_OUTPUT_PORTS, DeviceAudioSession
from aura.config import AudioConfig
from aura.core.errors import AudioSessionError
from aura.models.enums import (
    AudioCategory,
    AudioCategoryOption,
    AudioMode,
    InterruptionType,
    OutputOverride,
    RecordPermission,
    WebhookEventType,
)

if TYPE_CHECKING:
    from aura.core.diagnostics import DiagnosticsLog

logger = logging.getLogger("aura.audio")

EventEmitter = Callable[[WebhookEventType, dict[str, Any]], None]
ResumeCallback = Callable[[], Any]
Marshal = Callable[[Callable[..., Any]], Callable[..., Any]]

VOICE_CHAT_OPTIONS: frozenset[AudioCategoryOption] = frozenset(
    {
        AudioCategoryOption.ALLOW_BLUETOOTH,
        AudioCategoryOption.DEFAULT_TO_SPEAKER,
        AudioCategoryOption.MIX_WITH_OTHERS,
        AudioCategoryOption.ALLOW_BLUETOOTH_A2DP,
    }
)
FALLBACK_OPTIONS: frozenset[AudioCategoryOption] = frozenset(
    {AudioCategoryOption.DEFAULT_TO_SPEAKER}
)
LOUDSPEAKER_OPTIONS: frozenset[AudioCategoryOption] = frozenset(
    {AudioCategoryOption.DEFAULT_TO_SPEAKER, AudioCategoryOption.ALLOW_BLUETOOTH}
)


class AudioSessionCoordinator:
    """Drives a :class:`DeviceAudioSession` on behalf of the session client.

    Handles the microphone permission flow, voice-chat configuration with
    a fallback, output routing (loudspeaker unless an external accessory
    is connected), and recovery after interruptions and media-services
    resets.
    """

    def __init__(
        self,
        session: DeviceAudioSession,
        *,
        diagnostics: DiagnosticsLog,
        emit: EventEmitter,
        config: AudioConfig | None = None,
    ) -> None:
        self._session = session
        self._diagnostics = diagnostics
        self._emit = emit
        self._config = config or AudioConfig()
        self._resume_callbacks: list[ResumeCallback] = []
        self._attached = False

    @property
    def session(self) -> DeviceAudioSession:
        return self._session

    # -- Permission --

    async def request_permission(self) -> bool:
        """Resolve microphone access, prompting only when undetermined."""
        status = self._session.record_permission
        logger.info("Checking microphone permission status: %s", status)
        if status == RecordPermission.GRANTED:
            return True
        if status == RecordPermission.DENIED:
            logger.warning("Microphone permission denied - user needs to enable it in settings")
            self._emit(WebhookEventType.MIC_PERMISSION_DENIED, {})
            return False

        logger.info("Requesting microphone permission from user")
        granted = await self._session.request_record_permission()
        logger.info("Microphone permission request result: %s", granted)
        self._emit(WebhookEventType.MIC_PERMISSION_REQUESTED, {"granted": granted})
        return granted

    # -- Configuration --

    def configure(self) -> bool:
        """Apply voice-chat configuration, falling back to a minimal one."""
        try:
            self._session.set_category(
                AudioCategory.PLAY_AND_RECORD,
                mode=AudioMode.VOICE_CHAT,
                options=VOICE_CHAT_OPTIONS,
            )
            self._session.set_active(True)
            self._diagnostics.append("Audio session configured successfully")
            return True
        except AudioSessionError as exc:
            self._diagnostics.append(f"Audio session error: {exc}")

        try:
            self._session.set_category(AudioCategory.PLAY_AND_RECORD, options=FALLBACK_OPTIONS)
            self._session.set_active(True)
            self._diagnostics.append("Audio session configured with fallback settings")
            return True
        except AudioSessionError as exc:
            self._diagnostics.append(f"Audio session fallback failed: {exc}")
            return False

    def configure_for_loudspeaker(self) -> bool:
        try:
            self._session.set_category(AudioCategory.PLAY_AND_RECORD, options=LOUDSPEAKER_OPTIONS)
            self._session.set_active(True)
        except AudioSessionError as exc:
            logger.warning("Failed to set audio session category to loudspeaker: %s", exc)
            return False
        return True

    def deactivate(self) -> bool:
        try:
            self._session.set_active(False, notify_others=True)
        except AudioSessionError as exc:
            self._diagnostics.append(f"Failed to deactivate audio session: {exc}")
            return False
        self._diagnostics.append("Audio session deactivated")
        return True

    def update_route(self) -> OutputOverride | None:
        """Force the loudspeaker unless an external output is connected."""
        outputs = self._session.current_outputs
        external = any(port in EXTERNAL_OUTPUT_PORTS for port in outputs)
        override = OutputOverride.NONE if external else OutputOverride.SPEAKER
        try:
            self._session.override_output_port(override)
        except AudioSessionError as exc:
            self._diagnostics.append(f"Audio route override error: {exc}")
            return None
        if external:
            routes = ", ".join(str(port) for port in outputs)
            self._diagnostics.append(f"Using external audio route: {routes}")
        else:
            self._diagnostics.append("Forced output to loudspeaker")
        return override

    # -- Notifications --

    def attach(self, marshal: Marshal | None = None) -> None:
        """Subscribe to the device session's notifications.

        Args:
            marshal: Wraps each handler so it runs on the owning event loop.
        """
        if self._attached:
            return
        wrap: Marshal = marshal or (lambda fn: fn)
        self._session.on_interruption(wrap(self.handle_interruption))
        self._session.on_route_change(wrap(self.handle_route_change))
        self._session.on_media_services_lost(wrap(self.handle_media_services_lost))
        self._session.on_media_services_reset(wrap(self.handle_media_services_reset))
        self._attached = True

    def on_resumed(self, callback: ResumeCallback) -> None:
        """Register callback fired after recovering from an interruption."""
        self._resume_callbacks.append(callback)

    async def handle_interruption(self, interruption: InterruptionType, should_resume: bool) -> None:
        if interruption == InterruptionType.BEGAN:
            self._diagnostics.append("Audio interruption began - pausing microphone")
            self._emit(WebhookEventType.AUDIO_INTERRUPTED, {"type": str(interruption)})
            return

        self._diagnostics.append(f"Audio interruption ended, should_resume={should_resume}")
        self._emit(
            WebhookEventType.AUDIO_INTERRUPTED,
            {"type": str(interruption), "shouldResume": should_resume},
        )
        if not should_resume:
            self._diagnostics.append(
                "Audio interruption ended but should not resume automatically"
            )
            return
        if self._config.interruption_resume_delay > 0:
            await asyncio.sleep(self._config.interruption_resume_delay)
        await self.recover_from_interruption()

    async def recover_from_interruption(self) -> None:
        self._diagnostics.append("Attempting recovery from audio interruption")
        self.configure()
        self.update_route()
        for cb in self._resume_callbacks:
            result = cb()
            if hasattr(result, "__await__"):
                await result

    def handle_route_change(self, reason: str) -> None:
        self._diagnostics.append(f"Route change: reason={reason}")
        self.update_route()

    def handle_media_services_lost(self) -> None:
        self._diagnostics.append("Audio media services were lost - will attempt to restore")

    def handle_media_services_reset(self) -> None:
        self._diagnostics.append("Audio media services were reset - reconfiguring session")
        self.configure_for_loudspeaker()
        self.update_route()
