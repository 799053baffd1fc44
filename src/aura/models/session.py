"""Session-scoped data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from aura.models.enums import SdpType, WebhookEventType

if TYPE_CHECKING:
    from aura.core.timers import TimerHandle


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class EphemeralCredential(BaseModel):
    """Short-lived token scoping a single negotiation attempt.

    The key is held as a ``SecretStr`` so it never leaks through ``repr``
    or logging. Credentials are never persisted.
    """

    model_config = ConfigDict(frozen=True)

    key: SecretStr
    issued_at: datetime = Field(default_factory=_utcnow)

    @property
    def bearer(self) -> str:
        """Value for an ``Authorization`` header."""
        return f"Bearer {self.key.get_secret_value()}"


class SessionDescription(BaseModel):
    """A local or remote SDP blob."""

    model_config = ConfigDict(frozen=True)

    type: SdpType
    sdp: str

    def preview(self, limit: int = 200) -> str:
        """First *limit* characters of the SDP, for diagnostics."""
        return self.sdp[:limit]


@dataclass
class ReconnectState:
    """Automatic reconnection bookkeeping for the current session."""

    max_attempts: int = 3
    attempts: int = 0
    pending_timer: TimerHandle | None = None

    @property
    def can_retry(self) -> bool:
        return self.attempts < self.max_attempts

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts

    def cancel_pending(self) -> None:
        """Cancel the scheduled reconnect, if any."""
        if self.pending_timer is not None:
            self.pending_timer.cancel()
            self.pending_timer = None

    def reset(self) -> None:
        self.cancel_pending()
        self.attempts = 0


@dataclass(frozen=True)
class LogEntry:
    """A single diagnostics line."""

    message: str
    timestamp: datetime = field(default_factory=_utcnow)

    def format(self) -> str:
        return f"[{self.timestamp.isoformat()}] {self.message}"


@dataclass(frozen=True)
class DataChannelMessage:
    """A frame received from or sent to the data channel.

    Text frames carry ``str``; binary frames carry ``bytes``.
    """

    data: str | bytes

    @property
    def is_binary(self) -> bool:
        return isinstance(self.data, bytes)

    @property
    def size(self) -> int:
        if isinstance(self.data, bytes):
            return len(self.data)
        return len(self.data.encode("utf-8"))


class WebhookEvent(BaseModel):
    """Body POSTed to the webhook sink."""

    event: WebhookEventType
    timestamp: str = Field(default_factory=lambda: _utcnow().isoformat())
    payload: dict[str, Any] = Field(default_factory=dict)
    state: str
