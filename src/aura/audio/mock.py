"""Mock device audio session for testing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from aura.audio.session import (
    DeviceAudioSession,
    InterruptionCallback,
    MediaServicesCallback,
    RouteChangeCallback,
)
from aura.core.errors import AudioSessionError
from aura.models.enums import (
    AudioCategory,
    AudioCategoryOption,
    AudioMode,
    AudioPortType,
    InterruptionType,
    OutputOverride,
    RecordPermission,
)


@dataclass
class AudioSessionCall:
    """Record of a method call for test assertions."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class MockAudioSession(DeviceAudioSession):
    """Mock audio session for testing.

    Example:
        audio = MockAudioSession(permission=RecordPermission.UNDETERMINED, grant=False)
        assert await audio.request_record_permission() is False

        audio.outputs = [AudioPortType.BLUETOOTH_A2DP]
        await audio.simulate_route_change("new_device_available")
        assert audio.output_override == OutputOverride.NONE
    """

    def __init__(
        self,
        *,
        permission: RecordPermission = RecordPermission.GRANTED,
        grant: bool = True,
        outputs: list[AudioPortType] | None = None,
    ) -> None:
        self.calls: list[AudioSessionCall] = []
        self.permission = permission
        self.grant = grant
        self.outputs: list[AudioPortType] = outputs or [AudioPortType.BUILT_IN_SPEAKER]
        self.active = False
        self.category: AudioCategory | None = None
        self.options: frozenset[AudioCategoryOption] = frozenset()
        self.output_override: OutputOverride | None = None
        # Number of upcoming set_category calls that should fail
        self.fail_category_calls = 0
        self.fail_override = False
        self.fail_deactivate = False
        # Callbacks
        self._interruption_callbacks: list[InterruptionCallback] = []
        self._route_callbacks: list[RouteChangeCallback] = []
        self._lost_callbacks: list[MediaServicesCallback] = []
        self._reset_callbacks: list[MediaServicesCallback] = []

    @property
    def record_permission(self) -> RecordPermission:
        return self.permission

    async def request_record_permission(self) -> bool:
        self.calls.append(AudioSessionCall(method="request_record_permission"))
        self.permission = RecordPermission.GRANTED if self.grant else RecordPermission.DENIED
        return self.grant

    def set_category(
        self,
        category: AudioCategory,
        *,
        mode: AudioMode = AudioMode.DEFAULT,
        options: frozenset[AudioCategoryOption] = frozenset(),
    ) -> None:
        self.calls.append(
            AudioSessionCall(
                method="set_category",
                args={"category": category, "mode": mode, "options": options},
            )
        )
        if self.fail_category_calls > 0:
            self.fail_category_calls -= 1
            raise AudioSessionError("category rejected")
        self.category = category
        self.options = options

    def set_active(self, active: bool, *, notify_others: bool = False) -> None:
        self.calls.append(
            AudioSessionCall(
                method="set_active",
                args={"active": active, "notify_others": notify_others},
            )
        )
        if not active and self.fail_deactivate:
            raise AudioSessionError("deactivation rejected")
        self.active = active

    @property
    def current_outputs(self) -> list[AudioPortType]:
        return list(self.outputs)

    def override_output_port(self, override: OutputOverride) -> None:
        self.calls.append(AudioSessionCall(method="override_output_port", args={"override": override}))
        if self.fail_override:
            raise AudioSessionError("override rejected")
        self.output_override = override

    def method_calls(self, method: str) -> list[AudioSessionCall]:
        return [c for c in self.calls if c.method == method]

    # -- Callback registration --

    def on_interruption(self, callback: InterruptionCallback) -> None:
        self._interruption_callbacks.append(callback)

    def on_route_change(self, callback: RouteChangeCallback) -> None:
        self._route_callbacks.append(callback)

    def on_media_services_lost(self, callback: MediaServicesCallback) -> None:
        self._lost_callbacks.append(callback)

    def on_media_services_reset(self, callback: MediaServicesCallback) -> None:
        self._reset_callbacks.append(callback)

    # -- Test helpers --

    async def simulate_interruption(
        self, interruption: InterruptionType, *, should_resume: bool = False
    ) -> None:
        for cb in self._interruption_callbacks:
            result = cb(interruption, should_resume)
            if hasattr(result, "__await__"):
                await result

    async def simulate_route_change(self, reason: str = "unknown") -> None:
        for cb in self._route_callbacks:
            result = cb(reason)
            if hasattr(result, "__await__"):
                await result

    async def simulate_media_services_lost(self) -> None:
        for cb in self._lost_callbacks:
            result = cb()
            if hasattr(result, "__await__"):
                await result

    async def simulate_media_services_reset(self) -> None:
        for cb in self._reset_callbacks:
            result = cb()
            if hasattr(result, "__await__"):
                await result
