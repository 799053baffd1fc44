"""Two-hop signaling: ephemeral credential, then SDP offer/answer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError, field_validator

from aura.core.errors import CredentialFetchError, NegotiationError
from aura.models.enums import SdpType
from aura.models.session import EphemeralCredential, SessionDescription

if TYPE_CHECKING:
    from aura.config import SignalingConfig

logger = logging.getLogger("aura.signaling")


class TokenResponse(BaseModel):
    """Credential endpoint response body."""

    key: str

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("key must not be empty")
        return v


class SignalingClient:
    """Performs the credential fetch and the offer/answer exchange.

    Both calls are asynchronous and raise on failure; the caller decides
    whether to retry.

    Example:
        signaling = SignalingClient(SignalingConfig(backend_base_url="https://api.example.com"))
        credential = await signaling.fetch_credential()
        answer = await signaling.exchange_offer(offer, credential)
    """

    def __init__(
        self,
        config: SignalingConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def config(self) -> SignalingConfig:
        return self._config

    @property
    def offer_url(self) -> str:
        return self._config.negotiation_url

    async def fetch_credential(self) -> EphemeralCredential:
        """Request an ephemeral key from the first-party backend.

        Raises:
            CredentialFetchError: On network failure, a non-2xx status, or a
                body without a usable ``key`` field.
        """
        url = self._config.token_url
        logger.debug("Requesting credential: %s %s", self._config.token_method, url)
        try:
            resp = await self._client.request(
                self._config.token_method,
                url,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise CredentialFetchError(f"Token error: {str(exc) or type(exc).__name__}") from exc

        logger.debug("Credential response status=%d", resp.status_code)
        if resp.is_error:
            raise CredentialFetchError(f"Token error: HTTP {resp.status_code}: {resp.text}")
        if not resp.content:
            raise CredentialFetchError("Token error: empty response body")

        try:
            token = TokenResponse.model_validate_json(resp.content)
        except ValidationError as exc:
            raise CredentialFetchError(
                f"Token error: malformed token response ({exc.error_count()} errors)"
            ) from exc

        return EphemeralCredential(key=token.key)

    async def exchange_offer(
        self,
        offer: SessionDescription,
        credential: EphemeralCredential,
    ) -> SessionDescription:
        """POST the raw offer SDP and return the remote answer.

        A JSON response is an error payload from the negotiation endpoint;
        its body is surfaced verbatim in the raised error.

        Raises:
            NegotiationError: On network failure, an error payload, a
                non-2xx status, or an empty / non-UTF-8 answer.
        """
        headers = {
            "Authorization": credential.bearer,
            self._config.protocol_header: self._config.protocol_version,
            "Content-Type": "application/sdp",
            "Accept": "application/sdp",
        }
        logger.debug(
            "Posting offer to %s (model=%s, %d chars)",
            self.offer_url,
            self._config.model,
            len(offer.sdp),
        )
        try:
            resp = await self._client.post(
                self.offer_url,
                params={"model": self._config.model},
                content=offer.sdp.encode("utf-8"),
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise NegotiationError(f"Offer POST error: {str(exc) or type(exc).__name__}") from exc

        logger.debug("Offer response status=%d", resp.status_code)
        content_type = resp.headers.get("content-type", "")
        if "application/json" in content_type:
            raise NegotiationError(
                f"Negotiation error JSON: {resp.text}",
                status_code=resp.status_code,
            )
        if resp.is_error:
            raise NegotiationError(
                f"Negotiation error: HTTP {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
            )
        if not resp.content:
            raise NegotiationError("Empty answer body", status_code=resp.status_code)
        try:
            answer = resp.content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise NegotiationError("Answer not UTF-8 text", status_code=resp.status_code) from exc

        return SessionDescription(type=SdpType.ANSWER, sdp=answer)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
