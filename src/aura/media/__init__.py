"""Media engine contract and implementations.

The aiortc engine lives in :mod:`aura.media.aiortc_engine` and is not
imported here so that ``aiortc`` stays optional.
"""

from aura.media.engine import (
    DataChannelMessageCallback,
    DataChannelStateCallback,
    IceStateCallback,
    MediaEngine,
)
from aura.media.mock import MockCall, MockMediaEngine

__all__ = [
    "DataChannelMessageCallback",
    "DataChannelStateCallback",
    "IceStateCallback",
    "MediaEngine",
    "MockCall",
    "MockMediaEngine",
]
