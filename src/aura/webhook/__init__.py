"""Webhook sinks for lifecycle and telemetry events."""

from aura.webhook.mock import MockWebhookSink
from aura.webhook.sink import HTTPWebhookSink, NoopWebhookSink, WebhookSink

__all__ = ["HTTPWebhookSink", "MockWebhookSink", "NoopWebhookSink", "WebhookSink"]
