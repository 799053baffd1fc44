"""Reconnection policy: whether and when to retry a failed session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, unique

from aura.config import ReconnectPolicy
from aura.models.enums import SessionState
from aura.models.session import ReconnectState

__all__ = ["ReconnectPlan", "ReconnectPolicy", "ReconnectSkip", "plan_reconnect"]


@unique
class ReconnectSkip(StrEnum):
    """Why no reconnect was scheduled."""

    BUSY = "busy"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class ReconnectPlan:
    attempt: int
    delay: float


def plan_reconnect(
    reconnect: ReconnectState,
    policy: ReconnectPolicy,
    state: SessionState,
) -> ReconnectPlan | ReconnectSkip:
    """Decide the next reconnect for a session in *state*.

    A session that is already connected or connecting is never
    reconnected concurrently. Otherwise the next attempt number and its
    capped exponential delay are returned, unless the attempt bound is
    reached.
    """
    if state in (SessionState.CONNECTED, SessionState.CONNECTING):
        return ReconnectSkip.BUSY
    if reconnect.exhausted:
        return ReconnectSkip.EXHAUSTED
    attempt = reconnect.attempts + 1
    return ReconnectPlan(attempt=attempt, delay=policy.delay_for(attempt))
