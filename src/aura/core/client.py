"""VoiceSessionClient: the session state machine."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from functools import partial
from typing import Any

from aura.audio.coordinator import AudioSessionCoordinator
from aura.audio.session import DeviceAudioSession
from aura.channel.protocol import EventChannelProtocol, InboundEventCallback
from aura.config import AuraConfig
from aura.core.diagnostics import DiagnosticsLog
from aura.core.errors import (
    AuraError,
    MediaEngineError,
    NegotiationError,
    PermissionDeniedError,
    TransportError,
)
from aura.core.retry import ReconnectPlan, plan_reconnect
from aura.core.timers import AsyncioTimerQueue, TimerHandle, TimerQueue
from aura.media.engine import MediaEngine
from aura.models.enums import (
    DataChannelState,
    IceConnectionState,
    SessionState,
    WebhookEventType,
)
from aura.models.session import EphemeralCredential, ReconnectState, WebhookEvent
from aura.signaling.client import SignalingClient
from aura.webhook.sink import HTTPWebhookSink, NoopWebhookSink, WebhookSink

logger = logging.getLogger("aura.session")

StateChangeCallback = Callable[[SessionState, SessionState], Any]
"""(old_state, new_state)"""

_STARTABLE = (SessionState.DISCONNECTED, SessionState.ERROR)


class VoiceSessionClient:
    """Establishes and maintains one real-time voice session.

    The client owns the media engine and drives the two-hop signaling
    sequence (credential, then offer/answer), classifies failures,
    schedules capped exponential-backoff reconnects and mirrors every
    lifecycle event to the webhook sink.

    All state lives on the event loop that called :meth:`start`.
    Collaborator callbacks fired from other threads are marshalled onto
    that loop before they touch the session.

    Example:
        client = VoiceSessionClient(
            AuraConfig(signaling=SignalingConfig(backend_base_url="https://api.example.com")),
            media_engine=AiortcMediaEngine(),
            audio_session=HostAudioSession(),
        )
        await client.start()
        ...
        await client.aclose()
    """

    def __init__(
        self,
        config: AuraConfig,
        *,
        media_engine: MediaEngine,
        audio_session: DeviceAudioSession,
        signaling: SignalingClient | None = None,
        webhook: WebhookSink | None = None,
        timers: TimerQueue | None = None,
        diagnostics: DiagnosticsLog | None = None,
    ) -> None:
        self._config = config
        self._engine = media_engine
        self._signaling = signaling or SignalingClient(config.signaling)
        if webhook is None:
            webhook = HTTPWebhookSink(config.webhook) if config.webhook else NoopWebhookSink()
        self._webhook = webhook
        self._timers = timers or AsyncioTimerQueue()
        self._diagnostics = diagnostics or DiagnosticsLog(config.log_display_limit)

        self._state = SessionState.DISCONNECTED
        self._reconnect = ReconnectState(max_attempts=config.reconnect.max_attempts)
        self._credential: EphemeralCredential | None = None
        self._grace_timer: TimerHandle | None = None
        self._generation = 0
        self._state_callbacks: list[StateChangeCallback] = []
        try:
            self._loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        self._coordinator = AudioSessionCoordinator(
            audio_session,
            diagnostics=self._diagnostics,
            emit=self._emit,
            config=config.audio,
        )
        self._channel = EventChannelProtocol(
            self._engine.send,
            diagnostics=self._diagnostics,
            emit=self._emit,
            session_update=config.channel.session_update(),
        )

        self._engine.on_ice_connection_state_change(self._marshal(self._handle_ice_state))
        self._engine.on_data_channel_state_change(self._marshal(self._handle_channel_state))
        self._engine.on_data_channel_message(self._marshal(self._channel.handle_message))
        self._coordinator.attach(self._marshal)
        self._coordinator.on_resumed(self._handle_audio_resumed)

    # -- Observation --

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect.attempts

    @property
    def has_credential(self) -> bool:
        return self._credential is not None

    @property
    def diagnostics(self) -> DiagnosticsLog:
        return self._diagnostics

    @property
    def coordinator(self) -> AudioSessionCoordinator:
        return self._coordinator

    @property
    def media_engine(self) -> MediaEngine:
        return self._engine

    def on_state_change(self, callback: StateChangeCallback) -> None:
        """Register callback fired on every state transition."""
        self._state_callbacks.append(callback)

    def on_event(self, callback: InboundEventCallback) -> None:
        """Register callback for decoded inbound data channel events."""
        self._channel.on_event(callback)

    # -- Lifecycle --

    async def start(self) -> None:
        """Begin a new session. No-op unless disconnected or errored."""
        if self._state not in _STARTABLE:
            logger.debug("start() ignored in state %s", self._state)
            return

        self._loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        self._cancel_timers()
        self._reconnect = ReconnectState(max_attempts=self._config.reconnect.max_attempts)
        self._channel.reset()

        self._set_state(SessionState.CONNECTING)
        self._diagnostics.append("Starting voice session…")
        self._emit(WebhookEventType.SESSION_START, {})

        granted = await self._coordinator.request_permission()
        if self._is_stale(generation):
            return
        if not granted:
            self._fail(PermissionDeniedError("Microphone permission denied"))
            return

        self._coordinator.configure()
        self._coordinator.update_route()
        await self._connect(generation)

    async def stop(self) -> None:
        """End the session and release media resources. Idempotent."""
        self._generation += 1
        self._cancel_timers()
        self._credential = None
        await self._teardown_engine()
        self._channel.reset()
        self._reconnect.attempts = 0
        was_idle = self._state == SessionState.DISCONNECTED
        self._set_state(SessionState.DISCONNECTED)
        if was_idle:
            return
        self._diagnostics.append("Stopped voice session")
        self._emit(WebhookEventType.SESSION_STOP, {})
        self._coordinator.deactivate()

    async def aclose(self) -> None:
        """Stop the session and release every owned resource."""
        await self.stop()
        await self._timers.close()
        await self._signaling.aclose()
        await self._webhook.flush()
        await self._webhook.aclose()

    async def __aenter__(self) -> VoiceSessionClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def send_event(self, event: dict[str, Any]) -> bool:
        """Send a JSON event over the data channel. Returns False on failure."""
        return self._channel.send_event(event)

    # -- Signaling sequence --

    async def _connect(self, generation: int) -> None:
        try:
            await self._negotiate(generation)
        except AuraError as exc:
            if self._is_stale(generation):
                logger.debug("Discarding failure from superseded attempt: %s", exc)
                return
            self._fail(exc)

    async def _negotiate(self, generation: int) -> None:
        self._diagnostics.append("Fetching ephemeral key…")
        credential = await self._signaling.fetch_credential()
        if self._is_stale(generation):
            return
        self._credential = credential
        self._diagnostics.append("Ephemeral key received")

        try:
            await self._engine.open()
            offer = await self._engine.create_offer()
        except Exception as exc:
            raise NegotiationError(f"Offer creation error: {exc}") from exc
        if self._is_stale(generation):
            return
        self._diagnostics.append(f"Local SDP offer created ({len(offer.sdp)} bytes)")
        logger.debug("Local SDP preview: %s", offer.preview())

        credential = self._take_credential()
        if credential is None:
            return
        self._diagnostics.append("Sending SDP offer…")
        answer = await self._signaling.exchange_offer(offer, credential)
        if self._is_stale(generation):
            return
        self._diagnostics.append(f"Received SDP answer ({len(answer.sdp)} bytes)")

        try:
            await self._engine.set_remote_description(answer)
        except Exception as exc:
            raise NegotiationError(f"setRemoteDescription error: {exc}") from exc
        if self._is_stale(generation):
            return

        self._reconnect.attempts = 0
        self._set_state(SessionState.CONNECTED)
        self._diagnostics.append("Connected")
        self._emit(WebhookEventType.CONNECTED, {})

    def _take_credential(self) -> EphemeralCredential | None:
        credential, self._credential = self._credential, None
        return credential

    # -- Failure and reconnection --

    def _fail(self, error: AuraError) -> None:
        self._generation += 1
        self._credential = None
        self._cancel_grace_timer()

        message = str(error)
        attempts = self._reconnect.attempts
        self._diagnostics.append(f"FAILURE: {message}")
        logger.warning(
            "Session failure: %s",
            message,
            extra={"error_type": error.error_type, "reconnect_attempts": attempts},
        )
        self._set_state(SessionState.ERROR)
        self._emit(
            WebhookEventType.ERROR,
            {
                "message": message,
                "error_type": error.error_type,
                "reconnect_attempts": attempts,
            },
        )

        if not error.retryable:
            return
        if self._reconnect.can_retry:
            self._schedule_reconnect()
        else:
            self._diagnostics.append(
                "Max reconnect attempts reached - not scheduling further reconnects"
            )
            self._coordinator.deactivate()

    def _schedule_reconnect(self) -> ReconnectPlan | None:
        plan = plan_reconnect(self._reconnect, self._config.reconnect, self._state)
        if not isinstance(plan, ReconnectPlan):
            logger.debug("Reconnect not scheduled (%s) in state %s", plan, self._state)
            return None

        self._reconnect.attempts = plan.attempt
        self._reconnect.cancel_pending()
        self._reconnect.pending_timer = self._timers.call_later(
            plan.delay,
            partial(self._run_reconnect, self._generation),
            name="reconnect",
        )
        self._diagnostics.append(
            f"Reconnecting in {plan.delay:g}s… "
            f"(attempt {plan.attempt}/{self._reconnect.max_attempts})"
        )
        self._emit(
            WebhookEventType.RECONNECT_SCHEDULED,
            {"attempt": plan.attempt, "delay": plan.delay},
        )
        return plan

    async def _run_reconnect(self, generation: int) -> None:
        if self._is_stale(generation) or self._state != SessionState.ERROR:
            return
        self._reconnect.pending_timer = None
        self._diagnostics.append(
            f"Reconnect attempt {self._reconnect.attempts}/{self._reconnect.max_attempts}"
        )
        self._set_state(SessionState.CONNECTING)
        self._coordinator.configure()
        await self._teardown_engine()
        self._channel.reset()
        settle = self._config.reconnect.settle_delay_seconds
        if settle > 0:
            await asyncio.sleep(settle)
        if self._is_stale(generation):
            return
        await self._connect(generation)

    # -- Collaborator signals --

    async def _handle_ice_state(self, state: IceConnectionState) -> None:
        if self._state == SessionState.DISCONNECTED:
            logger.debug("Ignoring ICE state %s while disconnected", state)
            return
        self._diagnostics.append(f"ICE connection state: {state}")
        self._emit(WebhookEventType.ICE_STATE_CHANGE, {"state": str(state)})
        if self._state == SessionState.ERROR:
            # Recovery belongs to the pending reconnect (or exhaustion).
            return

        if state in (IceConnectionState.CONNECTED, IceConnectionState.COMPLETED):
            self._reconnect.attempts = 0
            self._cancel_grace_timer()
        elif state == IceConnectionState.DISCONNECTED:
            self._start_grace_timer()
        elif state == IceConnectionState.FAILED:
            self._fail(TransportError("ICE connection failed"))

    def _start_grace_timer(self) -> None:
        self._cancel_grace_timer()
        self._grace_timer = self._timers.call_later(
            self._config.reconnect.disconnect_grace_seconds,
            partial(self._check_disconnected, self._generation),
            name="ice_grace",
        )

    async def _check_disconnected(self, generation: int) -> None:
        self._grace_timer = None
        if self._is_stale(generation):
            return
        if self._engine.ice_connection_state != IceConnectionState.DISCONNECTED:
            logger.debug("ICE recovered within the grace period")
            return
        self._fail(TransportError("ICE connection disconnected"))

    def _handle_channel_state(self, state: DataChannelState, label: str) -> None:
        self._channel.handle_state_change(state, label)

    async def _handle_audio_resumed(self) -> None:
        if self._state != SessionState.CONNECTED:
            return
        self._diagnostics.append("Recreating local audio track")
        try:
            await self._engine.recreate_local_audio_track()
        except MediaEngineError as exc:
            self._diagnostics.append(f"Failed to recreate local audio track: {exc}")

    # -- Internals --

    async def _teardown_engine(self) -> None:
        try:
            await self._engine.close()
        except MediaEngineError as exc:
            self._diagnostics.append(f"Media engine teardown error: {exc}")

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _cancel_grace_timer(self) -> None:
        if self._grace_timer is not None:
            self._grace_timer.cancel()
            self._grace_timer = None

    def _cancel_timers(self) -> None:
        self._reconnect.cancel_pending()
        self._cancel_grace_timer()

    def _set_state(self, state: SessionState) -> None:
        old = self._state
        if old == state:
            return
        self._state = state
        logger.info("Session state: %s -> %s", old, state)
        for cb in self._state_callbacks:
            try:
                cb(old, state)
            except Exception:
                logger.exception("State change callback failed")

    def _emit(self, event_type: WebhookEventType, payload: dict[str, Any]) -> None:
        event = WebhookEvent(event=event_type, payload=payload, state=self._state.value)
        self._webhook.emit(event)

    def _marshal(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        """Wrap *handler* so it always runs on the session's event loop.

        On the owning loop the handler runs inline and any coroutine is
        returned for the caller to await. From another thread the call is
        scheduled on the loop and nothing is returned.
        """

        def dispatch(*args: Any) -> Any:
            loop = self._loop
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if loop is None or running is loop or loop.is_closed():
                return handler(*args)
            if inspect.iscoroutinefunction(handler):
                asyncio.run_coroutine_threadsafe(handler(*args), loop)
            else:
                loop.call_soon_threadsafe(handler, *args)
            return None

        return dispatch
