"""Aura client configuration."""

from __future__ import annotations

from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, SecretStr, field_validator

_DEFAULT_TOKEN_PATH = "/api/aura/token"
_DEFAULT_NEGOTIATION_URL = "https://api.openai.com/v1/realtime"
_DEFAULT_MODEL = "gpt-realtime"


def _validate_http_url(v: str, field_name: str) -> str:
    parsed = urlparse(v)
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"{field_name} must be a valid URL with scheme and host")
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"{field_name} scheme must be http or https, got {parsed.scheme!r}")
    return v


class SignalingConfig(BaseModel):
    """Endpoints and headers for the two-hop signaling handshake.

    Attributes:
        backend_base_url: First-party backend that issues ephemeral keys.
        token_path: Path of the credential endpoint on the backend.
        token_method: HTTP verb for the credential request. ``POST`` is
            canonical; ``GET`` exists for older backends.
        negotiation_url: Realtime SDP exchange endpoint.
        model: Model identifier passed as the ``model`` query parameter.
        protocol_header: Name of the protocol-version header.
        protocol_version: Value of the protocol-version header.
        timeout: HTTP request timeout in seconds.
    """

    backend_base_url: str
    token_path: str = _DEFAULT_TOKEN_PATH
    token_method: Literal["POST", "GET"] = "POST"
    negotiation_url: str = _DEFAULT_NEGOTIATION_URL
    model: str = _DEFAULT_MODEL
    protocol_header: str = "OpenAI-Beta"
    protocol_version: str = "realtime=v1"
    timeout: float = Field(default=30.0, gt=0.0)

    @field_validator("backend_base_url", "negotiation_url")
    @classmethod
    def validate_urls(cls, v: str) -> str:
        return _validate_http_url(v, "url")

    @property
    def token_url(self) -> str:
        return self.backend_base_url.rstrip("/") + "/" + self.token_path.lstrip("/")


class WebhookConfig(BaseModel):
    """Configuration for the lifecycle-event webhook sink."""

    url: str
    secret: SecretStr | None = None
    """When set, bodies are signed with HMAC-SHA256 in ``X-Aura-Signature``."""
    timeout: float = Field(default=10.0, gt=0.0)
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _validate_http_url(v, "webhook url")


class ReconnectPolicy(BaseModel):
    """Bounded exponential backoff for automatic reconnection.

    With the defaults, consecutive failures are retried after 2, 4 and 8
    seconds; a fourth consecutive failure is terminal.
    """

    max_attempts: int = Field(default=3, ge=0)
    exponential_base: float = Field(default=2.0, gt=0.0)
    max_delay_seconds: float = Field(default=30.0, gt=0.0)
    settle_delay_seconds: float = Field(default=0.5, ge=0.0)
    """Pause between tearing down the old peer and negotiating a new one."""
    disconnect_grace_seconds: float = Field(default=2.0, ge=0.0)
    """How long an ICE ``disconnected`` state may last before reconnecting."""

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in seconds for the given 1-based *attempt*."""
        return min(self.exponential_base**attempt, self.max_delay_seconds)


class AudioConfig(BaseModel):
    """Device audio session behaviour."""

    interruption_resume_delay: float = Field(default=0.5, ge=0.0)
    """Delay before recovering after an interruption that should resume."""


class ChannelConfig(BaseModel):
    """Data channel settings and the optional post-connect handshake.

    When ``voice`` or ``output_audio_format`` is set, a single
    ``session.update`` message is sent as soon as the channel opens.
    """

    label: str = "oai-events"
    voice: str | None = None
    output_audio_format: str | None = None

    def session_update(self) -> dict[str, Any] | None:
        session: dict[str, Any] = {}
        if self.voice:
            session["voice"] = self.voice
        if self.output_audio_format:
            session["output_audio_format"] = self.output_audio_format
        if not session:
            return None
        return {"type": "session.update", "session": session}


class AuraConfig(BaseModel):
    """Top-level configuration for :class:`~aura.core.client.VoiceSessionClient`."""

    signaling: SignalingConfig
    webhook: WebhookConfig | None = None
    reconnect: ReconnectPolicy = Field(default_factory=ReconnectPolicy)
    audio: AudioConfig = Field(default_factory=AudioConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    log_display_limit: int = Field(default=200, gt=0)
