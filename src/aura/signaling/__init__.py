"""Signaling handshake with the credential backend and negotiation endpoint."""

from aura.signaling.client import SignalingClient, TokenResponse

__all__ = ["SignalingClient", "TokenResponse"]
