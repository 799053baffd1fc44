"""Recording webhook sink for tests."""

from __future__ import annotations

from aura.models.enums import WebhookEventType
from aura.models.session import WebhookEvent
from aura.webhook.sink import WebhookSink


class MockWebhookSink(WebhookSink):
    """Stores every emitted event in order.

    Example:
        webhook = MockWebhookSink()
        ...
        assert webhook.names() == ["session_start", "connected"]
        assert webhook.of(WebhookEventType.ERROR)[0].payload["reconnect_attempts"] == 0
    """

    def __init__(self) -> None:
        self.events: list[WebhookEvent] = []
        self.closed = False

    def emit(self, event: WebhookEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [str(e.event) for e in self.events]

    def of(self, event_type: WebhookEventType) -> list[WebhookEvent]:
        return [e for e in self.events if e.event == event_type]

    def count(self, event_type: WebhookEventType) -> int:
        return len(self.of(event_type))

    def clear(self) -> None:
        self.events.clear()

    async def aclose(self) -> None:
        self.closed = True
