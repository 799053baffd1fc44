"""Exception hierarchy for the Aura voice client."""

from __future__ import annotations


class AuraError(Exception):
    """Base class for all Aura errors."""

    error_type: str = "aura_error"
    retryable: bool = True


class PermissionDeniedError(AuraError):
    """Microphone access was refused.

    Retrying without permission is futile, so this never triggers an
    automatic reconnect. A later manual ``start()`` is still allowed.
    """

    error_type = "permission_denied"
    retryable = False


class CredentialFetchError(AuraError):
    """The backend did not return a usable ephemeral key."""

    error_type = "credential_fetch_failed"


class NegotiationError(AuraError):
    """Offer/answer exchange failed or produced an unusable answer."""

    error_type = "negotiation_failed"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransportError(AuraError):
    """ICE reported a failed or persistently disconnected transport."""

    error_type = "transport_failed"


class SerializationError(AuraError):
    """An outbound data-channel event could not be encoded.

    Logged only; never changes the session state.
    """

    error_type = "serialization_failed"


class MediaEngineError(AuraError):
    """Raised by media engines when a peer operation fails."""

    error_type = "media_engine_error"


class AudioSessionError(AuraError):
    """Raised by device audio sessions when configuration fails."""

    error_type = "audio_session_error"
