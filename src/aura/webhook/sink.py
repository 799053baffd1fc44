"""Fire-and-forget webhook sink for lifecycle and telemetry events."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx

from aura.models.session import WebhookEvent

if TYPE_CHECKING:
    from aura.config import WebhookConfig

logger = logging.getLogger("aura.webhook")


class WebhookSink(ABC):
    """Receives every lifecycle, error and data-channel event.

    ``emit`` must never raise and never block the caller; delivery
    happens in the background.
    """

    @abstractmethod
    def emit(self, event: WebhookEvent) -> None: ...

    async def flush(self) -> None:
        """Wait for in-flight deliveries."""

    async def aclose(self) -> None:
        """Release resources."""


class NoopWebhookSink(WebhookSink):
    """Used when no webhook URL is configured."""

    def emit(self, event: WebhookEvent) -> None:
        logger.debug("Webhook skipped (no URL configured): %s", event.event)


class HTTPWebhookSink(WebhookSink):
    """POSTs each event as JSON to the configured URL."""

    def __init__(
        self,
        config: WebhookConfig,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout)
        self._tasks: set[asyncio.Task[None]] = set()
        self.delivered: int = 0
        self.failed: int = 0

    def emit(self, event: WebhookEvent) -> None:
        try:
            body = json.dumps(event.model_dump(mode="json"))
        except (TypeError, ValueError):
            logger.warning("Webhook JSON encode error for %s", event.event, exc_info=True)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Webhook %s dropped: no running event loop", event.event)
            return
        task = loop.create_task(self._post(event, body))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _post(self, event: WebhookEvent, body: str) -> None:
        headers = self._build_headers(body)
        try:
            resp = await self._client.post(self._config.url, content=body, headers=headers)
            resp.raise_for_status()
        except httpx.TimeoutException:
            self.failed += 1
            logger.warning("Webhook %s timed out", event.event)
            return
        except httpx.HTTPStatusError as exc:
            self.failed += 1
            logger.warning(
                "Webhook %s rejected: http_%d",
                event.event,
                exc.response.status_code,
            )
            return
        except httpx.HTTPError as exc:
            self.failed += 1
            logger.warning("Webhook %s error: %s", event.event, exc)
            return
        self.delivered += 1
        logger.debug(
            "Webhook %s delivered: status=%d",
            event.event,
            resp.status_code,
            extra={"webhook_event": str(event.event)},
        )

    def _build_headers(self, body: str) -> dict[str, str]:
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **self._config.headers,
        }
        if self._config.secret is not None:
            signature = hmac.new(
                self._config.secret.get_secret_value().encode(),
                body.encode(),
                hashlib.sha256,
            ).hexdigest()
            headers["X-Aura-Signature"] = signature
        return headers

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def flush(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.flush()
        if self._owns_client:
            await self._client.aclose()
