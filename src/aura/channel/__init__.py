"""Data channel event protocol."""

from aura.channel.protocol import (
    ClassifiedMessage,
    EventChannelProtocol,
    classify_message,
    decode_event,
    encode_event,
)

__all__ = [
    "ClassifiedMessage",
    "EventChannelProtocol",
    "classify_message",
    "decode_event",
    "encode_event",
]
