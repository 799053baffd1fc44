"""Event protocol carried over the data channel.

Outbound events are JSON objects sent as text frames. Inbound frames are
classified as text, binary that decodes as UTF-8, or opaque binary, and
mirrored to the webhook sink. Decoded JSON events are also handed to
``on_event`` listeners.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from aura.core.errors import MediaEngineError, SerializationError
from aura.models.enums import DataChannelState, MessageFormat, WebhookEventType
from aura.models.session import DataChannelMessage

if TYPE_CHECKING:
    from aura.core.diagnostics import DiagnosticsLog

logger = logging.getLogger("aura.channel")

SendFrame = Callable[[str], None]
EventEmitter = Callable[[WebhookEventType, dict[str, Any]], None]
InboundEventCallback = Callable[[dict[str, Any]], Any]

_PREVIEW_LIMIT = 500


def encode_event(event: dict[str, Any]) -> str:
    """Serialise an outbound event to a JSON text frame.

    Raises:
        SerializationError: If *event* is not JSON-serialisable.
    """
    try:
        return json.dumps(event, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Failed to serialize event: {exc}") from exc


def decode_event(raw: str) -> dict[str, Any] | None:
    """Parse a JSON text frame. Returns None unless it is a JSON object."""
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


@dataclass(frozen=True)
class ClassifiedMessage:
    """An inbound frame with its webhook event kind and payload."""

    event: WebhookEventType
    payload: dict[str, Any] = field(default_factory=dict)
    text: str | None = None
    format: MessageFormat = MessageFormat.TEXT


def classify_message(message: DataChannelMessage) -> ClassifiedMessage:
    data = message.data
    if isinstance(data, str):
        return ClassifiedMessage(
            event=WebhookEventType.OAI_EVENT,
            payload={"raw_text": data, "format": str(MessageFormat.TEXT)},
            text=data,
            format=MessageFormat.TEXT,
        )
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return ClassifiedMessage(
            event=WebhookEventType.OAI_EVENT_BINARY,
            payload={"bytes": len(data)},
            format=MessageFormat.BINARY,
        )
    return ClassifiedMessage(
        event=WebhookEventType.OAI_EVENT,
        payload={"raw_text": text, "format": str(MessageFormat.BINARY_AS_TEXT)},
        text=text,
        format=MessageFormat.BINARY_AS_TEXT,
    )


class EventChannelProtocol:
    """Handles data channel lifecycle, inbound frames and outbound events."""

    def __init__(
        self,
        send: SendFrame,
        *,
        diagnostics: DiagnosticsLog,
        emit: EventEmitter,
        session_update: dict[str, Any] | None = None,
    ) -> None:
        self._send = send
        self._diagnostics = diagnostics
        self._emit = emit
        self._session_update = session_update
        self._handshake_sent = False
        self._event_callbacks: list[InboundEventCallback] = []

    @property
    def handshake_sent(self) -> bool:
        return self._handshake_sent

    def on_event(self, callback: InboundEventCallback) -> None:
        """Register callback for decoded inbound JSON events."""
        self._event_callbacks.append(callback)

    def reset(self) -> None:
        """Forget the handshake so the next channel open sends it again."""
        self._handshake_sent = False

    def handle_state_change(self, state: DataChannelState, label: str) -> None:
        self._diagnostics.append(f"DataChannel '{label}' state: {state}")
        self._emit(WebhookEventType.DATACHANNEL_STATE, {"state": str(state), "label": label})
        if state == DataChannelState.OPEN:
            self._send_handshake()
        elif state == DataChannelState.CLOSED:
            self._handshake_sent = False

    async def handle_message(self, message: DataChannelMessage) -> None:
        classified = classify_message(message)
        if classified.event == WebhookEventType.OAI_EVENT_BINARY:
            self._diagnostics.append(f"DataChannel binary message ({message.size} bytes)")
        else:
            text = classified.text or ""
            self._diagnostics.append(f"DataChannel message: {text[:_PREVIEW_LIMIT]}")
        self._emit(classified.event, classified.payload)

        if classified.text is None or not self._event_callbacks:
            return
        event = decode_event(classified.text)
        if event is None:
            logger.debug("Inbound frame is not a JSON object; not dispatched")
            return
        for cb in self._event_callbacks:
            try:
                result = cb(event)
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.exception("Inbound event callback failed")

    def send_event(self, event: dict[str, Any]) -> bool:
        """Send *event* as a text frame. Returns False on failure."""
        try:
            frame = encode_event(event)
        except SerializationError as exc:
            self._diagnostics.append(f"Failed to serialize data channel event: {exc}")
            return False
        try:
            self._send(frame)
        except MediaEngineError as exc:
            self._diagnostics.append(f"Failed to send data channel event: {exc}")
            return False
        logger.debug("Sent data channel event %s", event.get("type"))
        return True

    def _send_handshake(self) -> None:
        if self._session_update is None or self._handshake_sent:
            return
        if self.send_event(self._session_update):
            self._handshake_sent = True
            self._diagnostics.append("Sent session.update")
